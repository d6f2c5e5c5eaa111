"""Construct the core services once per application and hand them to routers."""
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from hackportal.config import Settings
from hackportal.dependencies.database import DatabaseSessionManager
from hackportal.services.applicant_service import ApplicantService
from hackportal.services.review_assignment import ReviewAssignmentEngine
from hackportal.services.review_service import ReviewService
from hackportal.services.storage.base import StorageBackend


@dataclass
class Services:
    settings: Settings
    applicants: ApplicantService
    reviews: ReviewService
    assignment: ReviewAssignmentEngine


def build_services(settings: Settings, sessionmanager: DatabaseSessionManager, storage: StorageBackend) -> Services:
    assignment = ReviewAssignmentEngine(sessionmanager, settings)
    return Services(
        settings=settings,
        applicants=ApplicantService(sessionmanager, storage, settings, assignment),
        reviews=ReviewService(sessionmanager, settings),
        assignment=assignment,
    )


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(512, "Services are not configured")
    return services


ServicesDep = Annotated[Services, Depends(get_services)]
