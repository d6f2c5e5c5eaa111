"""Applicant endpoints: apply, cancel, confirm."""
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError as PydanticValidationError

from hackportal.dependencies.auth import CurrentUserDep
from hackportal.dependencies.services import ServicesDep
from hackportal.exceptions import ValidationError
from hackportal.schemas.applicant import ApplicantResponse, ApplicationSubmission
from hackportal.services.application_flow import cancel_application, confirm_place, submit_application

router = APIRouter(prefix="/apply", tags=["applications"])


def application_form(
    age: int = Form(...),
    nationality: str = Form(...),
    country: str = Form(...),
    city: str = Form(...),
    university: str = Form(...),
    degree: str = Form(...),
    year_of_study: str = Form(...),
    t_shirt_size: str = Form(...),
    gender: str | None = Form(None),
    gender_other: str | None = Form(None),
    work_area: str | None = Form(None),
    work_area_other: str | None = Form(None),
    skills: str | None = Form(None),
    hackathon_count: str | None = Form(None),
    why_choose_hacker: str | None = Form(None),
    past_projects: str | None = Form(None),
    hardware_requests: str | None = Form(None),
    dietary_requirements: str | None = Form(None),
    dietary_requirements_other: str | None = Form(None),
    hear_about: str | None = Form(None),
    hear_about_other: str | None = Form(None),
) -> ApplicationSubmission:
    """Collect the multipart application form into an ApplicationSubmission."""
    try:
        return ApplicationSubmission(
            age=age,
            gender=gender,
            gender_other=gender_other,
            nationality=nationality,
            country=country,
            city=city,
            university=university,
            degree=degree,
            year_of_study=year_of_study,
            work_area=work_area,
            work_area_other=work_area_other,
            skills=skills,
            hackathon_count=hackathon_count,
            why_choose_hacker=why_choose_hacker,
            past_projects=past_projects,
            hardware_requests=hardware_requests,
            dietary_requirements=dietary_requirements,
            dietary_requirements_other=dietary_requirements_other,
            t_shirt_size=t_shirt_size,
            hear_about=hear_about,
            hear_about_other=hear_about_other,
        )
    except PydanticValidationError as e:
        violations = [f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in e.errors()]
        raise ValidationError("Failed to validate application", violations)


@router.get("/me", response_model=ApplicantResponse)
async def get_my_application(services: ServicesDep, current_user: CurrentUserDep) -> ApplicantResponse:
    """Return the current user's application."""
    applicant = await services.applicants.find_one(current_user.auth_id, by="auth_id")
    return ApplicantResponse.model_validate(applicant)


@router.post("", response_model=ApplicantResponse, status_code=status.HTTP_201_CREATED)
async def submit_application_endpoint(
    submission: Annotated[ApplicationSubmission, Depends(application_form)],
    services: ServicesDep,
    current_user: CurrentUserDep,
    cv: Annotated[UploadFile | None, File(alias="applicantCV")] = None,
) -> ApplicantResponse:
    """Submit an application, optionally with a CV."""
    cv_filename = None
    cv_file = None
    if cv is not None and cv.filename:
        cv_filename = cv.filename
        cv_file = await cv.read()

    applicant = await submit_application(
        services.applicants,
        submission,
        current_user,
        applications_open=services.settings.applications_are_open(),
        cv_filename=cv_filename,
        cv_file=cv_file,
    )
    return ApplicantResponse.model_validate(applicant)


@router.post("/cancel")
async def cancel_application_endpoint(services: ServicesDep, current_user: CurrentUserDep) -> dict[str, str]:
    """Withdraw (delete) or cancel the current user's application."""
    outcome = await cancel_application(
        services.applicants,
        current_user,
        applications_open=services.settings.applications_are_open(),
    )
    return {"result": outcome}


@router.post("/confirm", response_model=ApplicantResponse)
async def confirm_place_endpoint(services: ServicesDep, current_user: CurrentUserDep) -> ApplicantResponse:
    """Accept an invitation to the hackathon."""
    applicant = await confirm_place(services.applicants, current_user)
    return ApplicantResponse.model_validate(applicant)
