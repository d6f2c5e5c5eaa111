import pytest

from conftest import make_applicant
from hackportal.dependencies.auth import AuthLevel, RequestUser
from hackportal.exceptions import InvalidTransitionError, NotFoundError
from hackportal.models import ApplicantStatus
from hackportal.schemas.applicant import ApplicationSubmission
from hackportal.services.application_flow import (
    build_applicant,
    cancel_application,
    checkin,
    confirm_place,
    set_status,
    submit_application,
)


def _user(auth_id: str = "hacker-1") -> RequestUser:
    return RequestUser(auth_id=auth_id, name="Test", email="test@test.com", auth_level=AuthLevel.APPLICANT)


def _submission(**overrides) -> ApplicationSubmission:
    fields = {
        "age": 21,
        "gender": "Female",
        "nationality": "UK",
        "country": "UK",
        "city": "Manchester",
        "university": "UoM",
        "degree": "CS",
        "year_of_study": "Second",
        "work_area": "Backend",
        "hackathon_count": "2",
        "dietary_requirements": "None",
        "t_shirt_size": "M",
        "hear_about": "Friends",
    }
    fields.update(overrides)
    return ApplicationSubmission(**fields)


def test_build_applicant_prefers_other_text():
    applicant = build_applicant(
        _submission(gender="Other", gender_other="Agender", work_area=None, hear_about=None),
        _user(),
    )

    assert applicant.auth_id == "hacker-1"
    assert applicant.gender == "Agender"
    assert applicant.work_area == "Other"
    assert applicant.hear_about == "Other"
    assert applicant.hackathon_count == 2
    assert applicant.application_status == ApplicantStatus.APPLIED


def test_non_numeric_hackathon_count_is_not_answered():
    assert _submission(hackathon_count="lots").hackathon_count is None


async def test_submit_application_with_cv(applicant_service, storage):
    stored = await submit_application(
        applicant_service, _submission(), _user(), applications_open=True, cv_filename="cv.pdf", cv_file=b"%PDF"
    )

    assert stored.cv == "Test.test@test.com.cv.pdf"
    assert storage.blobs == {"Test.test@test.com.cv.pdf": b"%PDF"}
    assert stored.application_status == ApplicantStatus.APPLIED


async def test_submit_application_without_cv(applicant_service, storage):
    stored = await submit_application(applicant_service, _submission(), _user(), applications_open=True)

    assert stored.cv is None
    assert storage.blobs == {}


async def test_submit_application_when_closed(applicant_service):
    with pytest.raises(InvalidTransitionError):
        await submit_application(applicant_service, _submission(), _user(), applications_open=False)

    with pytest.raises(NotFoundError):
        await applicant_service.find_one("hacker-1", by="auth_id")


async def test_cancel_while_open_deletes_application(applicant_service, storage):
    await submit_application(
        applicant_service, _submission(), _user(), applications_open=True, cv_filename="cv.pdf", cv_file=b"cv"
    )

    assert await cancel_application(applicant_service, _user(), applications_open=True) == "deleted"

    assert storage.blobs == {}
    with pytest.raises(NotFoundError):
        await applicant_service.find_one("hacker-1", by="auth_id")


async def test_cancel_after_close_keeps_application(applicant_service):
    await applicant_service.save(make_applicant(auth_id="hacker-1"))

    assert await cancel_application(applicant_service, _user(), applications_open=False) == "cancelled"

    found = await applicant_service.find_one("hacker-1", by="auth_id")
    assert found.application_status == ApplicantStatus.CANCELLED


async def test_cancel_invited_application(applicant_service):
    await applicant_service.save(make_applicant(auth_id="hacker-1", application_status=ApplicantStatus.INVITED))

    assert await cancel_application(applicant_service, _user(), applications_open=True) == "cancelled"


async def test_cannot_cancel_admitted_application(applicant_service):
    await applicant_service.save(make_applicant(auth_id="hacker-1", application_status=ApplicantStatus.ADMITTED))

    with pytest.raises(InvalidTransitionError):
        await cancel_application(applicant_service, _user(), applications_open=True)


async def test_confirm_place(applicant_service):
    await applicant_service.save(make_applicant(auth_id="hacker-1", application_status=ApplicantStatus.INVITED))

    confirmed = await confirm_place(applicant_service, _user())

    assert confirmed.application_status == ApplicantStatus.CONFIRMED


async def test_confirm_place_requires_invitation(applicant_service):
    await applicant_service.save(make_applicant(auth_id="hacker-1"))

    with pytest.raises(InvalidTransitionError):
        await confirm_place(applicant_service, _user())


async def test_checkin_confirmed_hacker(applicant_service):
    saved = await applicant_service.save(make_applicant(application_status=ApplicantStatus.CONFIRMED))

    await checkin(applicant_service, str(saved.id))

    found = await applicant_service.find_one(saved.id)
    assert found.application_status == ApplicantStatus.ADMITTED


@pytest.mark.parametrize("status", [ApplicantStatus.APPLIED, ApplicantStatus.REJECTED, ApplicantStatus.CANCELLED])
async def test_checkin_rejects_unconfirmed_hacker(applicant_service, status):
    saved = await applicant_service.save(make_applicant(application_status=status))

    with pytest.raises(InvalidTransitionError, match="either rejected or did not confirm"):
        await checkin(applicant_service, saved.id)

    found = await applicant_service.find_one(saved.id)
    assert found.application_status == status


async def test_checkin_missing_hacker(applicant_service):
    with pytest.raises(NotFoundError):
        await checkin(applicant_service, "not-a-uuid")


async def test_set_status(applicant_service):
    saved = await applicant_service.save(make_applicant())

    updated = await set_status(applicant_service, saved.id, ApplicantStatus.INVITED)

    assert updated.application_status == ApplicantStatus.INVITED


@pytest.mark.parametrize(
    "current, target",
    [
        (ApplicantStatus.CANCELLED, ApplicantStatus.APPLIED),
        (ApplicantStatus.REJECTED, ApplicantStatus.APPLIED),
        (ApplicantStatus.CONFIRMED, ApplicantStatus.INVITED),
        (ApplicantStatus.INVITED, ApplicantStatus.APPLIED),
        (ApplicantStatus.ADMITTED, ApplicantStatus.REJECTED),
        (ApplicantStatus.CONFIRMED, ApplicantStatus.ADMITTED),
    ],
)
async def test_set_status_refuses_moves_outside_the_graph(applicant_service, current, target):
    saved = await applicant_service.save(make_applicant(application_status=current))

    with pytest.raises(InvalidTransitionError):
        await set_status(applicant_service, saved.id, target)

    found = await applicant_service.find_one(saved.id)
    assert found.application_status == current


async def test_cancelled_applicant_does_not_return_to_review_pool(applicant_service, assignment_engine):
    saved = await applicant_service.save(make_applicant(application_status=ApplicantStatus.CANCELLED))

    with pytest.raises(InvalidTransitionError):
        await set_status(applicant_service, saved.id, ApplicantStatus.APPLIED)

    assert await assignment_engine.get_k_random_to_review("rev1", 10) == []


@pytest.mark.parametrize(
    "current, target",
    [
        (ApplicantStatus.APPLIED, ApplicantStatus.REJECTED),
        (ApplicantStatus.INVITED, ApplicantStatus.CANCELLED),
        (ApplicantStatus.CONFIRMED, ApplicantStatus.REJECTED),
    ],
)
async def test_set_status_forward_moves(applicant_service, current, target):
    saved = await applicant_service.save(make_applicant(application_status=current))

    updated = await set_status(applicant_service, saved.id, target)

    assert updated.application_status == target


async def test_set_status_to_current_status_changes_nothing(applicant_service):
    saved = await applicant_service.save(make_applicant(application_status=ApplicantStatus.REJECTED))

    unchanged = await set_status(applicant_service, saved.id, ApplicantStatus.REJECTED)

    assert unchanged.application_status == ApplicantStatus.REJECTED
    assert unchanged.updated_at == saved.updated_at
