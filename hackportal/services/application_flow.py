"""Applicant-facing and organiser-facing flows that change an application's status.

The applicant service only checks field shape; whether a status change is allowed
from the current status is decided here.
"""
import logging
from uuid import UUID

from hackportal.dependencies.auth import RequestUser
from hackportal.exceptions import InvalidTransitionError
from hackportal.models import Applicant, ApplicantStatus
from hackportal.schemas.applicant import ApplicationSubmission
from hackportal.services.applicant_service import ApplicantService
from hackportal.utils import build_cv_key

logger = logging.getLogger(__name__)

# Forward-only moves an organiser may make. Check-in (CONFIRMED -> ADMITTED) has its own flow.
ORGANISER_TRANSITIONS = {
    ApplicantStatus.APPLIED: frozenset({ApplicantStatus.INVITED, ApplicantStatus.REJECTED}),
    ApplicantStatus.INVITED: frozenset({ApplicantStatus.CONFIRMED, ApplicantStatus.REJECTED, ApplicantStatus.CANCELLED}),
    ApplicantStatus.CONFIRMED: frozenset({ApplicantStatus.CANCELLED, ApplicantStatus.REJECTED}),
}


def _choice(other: str | None, selected: str | None) -> str:
    return other or selected or "Other"


def build_applicant(submission: ApplicationSubmission, user: RequestUser) -> Applicant:
    """Create a new APPLIED applicant for ``user`` from a submitted form."""
    return Applicant(
        auth_id=user.auth_id,
        age=submission.age,
        gender=_choice(submission.gender_other, submission.gender),
        nationality=submission.nationality,
        country=submission.country,
        city=submission.city,
        university=submission.university,
        degree=submission.degree,
        year_of_study=submission.year_of_study,
        work_area=_choice(submission.work_area_other, submission.work_area),
        skills=submission.skills,
        hackathon_count=submission.hackathon_count,
        why_choose_hacker=submission.why_choose_hacker,
        past_projects=submission.past_projects,
        hardware_requests=submission.hardware_requests,
        dietary_requirements=_choice(submission.dietary_requirements_other, submission.dietary_requirements),
        t_shirt_size=submission.t_shirt_size,
        hear_about=_choice(submission.hear_about_other, submission.hear_about),
        application_status=ApplicantStatus.APPLIED,
    )


async def submit_application(
    service: ApplicantService,
    submission: ApplicationSubmission,
    user: RequestUser,
    applications_open: bool,
    cv_filename: str | None = None,
    cv_file: bytes | None = None,
) -> Applicant:
    """
    Store a new application, with its CV when one was uploaded.

    Raises:
        InvalidTransitionError: If applications are closed
    """
    if not applications_open:
        raise InvalidTransitionError("Applications are closed")

    applicant = build_applicant(submission, user)
    if cv_filename and cv_file is not None:
        applicant.cv = build_cv_key(user.name, user.email, cv_filename)
    else:
        cv_file = None

    return await service.save(applicant, cv_file)


async def cancel_application(service: ApplicantService, user: RequestUser, applications_open: bool) -> str:
    """
    Withdraw ``user``'s application.

    While applications are open and nothing has happened beyond APPLIED the
    application is deleted so the user can apply again; otherwise it is cancelled.

    Returns:
        "deleted" or "cancelled"
    """
    applicant = await service.find_one(user.auth_id, by="auth_id")

    if applicant.application_status <= ApplicantStatus.APPLIED and applications_open:
        await service.delete(applicant.id)
        logger.info("Application withdrawn", extra={"applicant_id": str(applicant.id)})
        return "deleted"

    if applicant.application_status == ApplicantStatus.ADMITTED:
        raise InvalidTransitionError("Admitted applications cannot be cancelled")

    applicant.application_status = ApplicantStatus.CANCELLED
    await service.save(applicant)
    logger.info("Application cancelled", extra={"applicant_id": str(applicant.id)})
    return "cancelled"


async def confirm_place(service: ApplicantService, user: RequestUser) -> Applicant:
    """Accept an invitation: INVITED -> CONFIRMED."""
    applicant = await service.find_one(user.auth_id, by="auth_id")

    if applicant.application_status != ApplicantStatus.INVITED:
        raise InvalidTransitionError("Only invited applicants can confirm their place")

    applicant.application_status = ApplicantStatus.CONFIRMED
    return await service.save(applicant)


async def checkin(service: ApplicantService, applicant_id: UUID | str) -> Applicant:
    """
    Mark a hacker as attending: CONFIRMED -> ADMITTED.

    Raises:
        NotFoundError: If the applicant does not exist
        InvalidTransitionError: If the applicant is not CONFIRMED; nothing is changed
    """
    applicant = await service.find_one(applicant_id)

    if applicant.application_status != ApplicantStatus.CONFIRMED:
        raise InvalidTransitionError("Hacker was either rejected or did not confirm")

    applicant.application_status = ApplicantStatus.ADMITTED
    stored = await service.save(applicant)
    logger.info("Hacker checked in", extra={"applicant_id": str(stored.id)})
    return stored


async def set_status(service: ApplicantService, applicant_id: UUID | str, status: ApplicantStatus) -> Applicant:
    """
    Organiser decision on an application (invite, reject, cancel).

    Only the moves in ORGANISER_TRANSITIONS are allowed. Setting the current
    status again changes nothing.

    Raises:
        NotFoundError: If the applicant does not exist
        InvalidTransitionError: If the move is not allowed; nothing is changed
    """
    applicant = await service.find_one(applicant_id)
    current = applicant.application_status

    if status == current:
        return applicant
    if status not in ORGANISER_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(f"Cannot change status from {current.name} to {status.name}")

    applicant.application_status = status
    stored = await service.save(applicant)
    logger.info(
        "Application status changed",
        extra={"applicant_id": str(stored.id), "from_status": current.name, "to_status": status.name},
    )
    return stored
