from collections.abc import AsyncIterator
from datetime import datetime, timedelta
from itertools import count

import pytest

from hackportal.config import Settings
from hackportal.dependencies.database import DatabaseSessionManager
from hackportal.models import Applicant, ApplicantStatus
from hackportal.services.applicant_service import ApplicantService
from hackportal.services.review_assignment import ReviewAssignmentEngine
from hackportal.services.review_service import ReviewService
from hackportal.services.storage.base import StorageBackend

_auth_ids = count(1)


class InMemoryStorage(StorageBackend):
    """Storage double that keeps blobs in a dict and can be told to fail."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.fail_uploads = False
        self.fail_deletes = False

    async def upload(self, key: str, data: bytes) -> None:
        if self.fail_uploads:
            raise ConnectionError("object store unavailable")
        self.blobs[key] = data

    async def retrieve(self, key: str) -> bytes:
        try:
            return self.blobs[key]
        except KeyError:
            raise FileNotFoundError(key)

    async def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise ConnectionError("object store unavailable")
        self.blobs.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self.blobs


def make_applicant(**overrides) -> Applicant:
    """A valid, unsaved applicant. Every call gets a fresh auth_id unless one is given."""
    fields = {
        "auth_id": f"auth-{next(_auth_ids)}",
        "age": 20,
        "gender": "Test",
        "nationality": "UK",
        "country": "UK",
        "city": "Manchester",
        "university": "UoM",
        "degree": "CS",
        "year_of_study": "Foundation",
        "work_area": "This",
        "hackathon_count": 0,
        "dietary_requirements": "Test",
        "t_shirt_size": "M",
        "hear_about": "Other",
        "application_status": ApplicantStatus.APPLIED,
    }
    fields.update(overrides)
    return Applicant(**fields)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        environment="dev",
        storage_backend="local",
        storage_path=str(tmp_path / "cvs"),
        storage_max_size=1024,
        applications_open=None,
        applications_close=None,
        review_batch_size=5,
        reviews_per_applicant=2,
        review_max_score=10.0,
        review_assignment_fail_soft=True,
    )


@pytest.fixture
async def sessionmanager(settings) -> AsyncIterator[DatabaseSessionManager]:
    manager = DatabaseSessionManager(settings.database_url)
    await manager.configure()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def assignment_engine(sessionmanager, settings) -> ReviewAssignmentEngine:
    return ReviewAssignmentEngine(sessionmanager, settings)


@pytest.fixture
def applicant_service(sessionmanager, storage, settings, assignment_engine) -> ApplicantService:
    return ApplicantService(sessionmanager, storage, settings, assignment_engine)


@pytest.fixture
def review_service(sessionmanager, settings) -> ReviewService:
    return ReviewService(sessionmanager, settings)


@pytest.fixture
async def applied_applicants(applicant_service) -> list[Applicant]:
    """Ten APPLIED applicants, created one minute apart, oldest first."""
    start = datetime(2026, 1, 1, 9, 0, 0)
    applicants = []
    for i in range(10):
        applicant = make_applicant(created_at=start + timedelta(minutes=i))
        applicants.append(await applicant_service.save(applicant))
    return applicants
