"""Reviewer endpoints."""
from fastapi import APIRouter, Query, status

from hackportal.dependencies.auth import OrganiserDep
from hackportal.dependencies.services import ServicesDep
from hackportal.schemas.applicant import ApplicantResponse
from hackportal.schemas.review import ReviewCreate, ReviewResponse

router = APIRouter(prefix="/review", tags=["reviews"])


@router.get("/next", response_model=list[ApplicantResponse])
async def get_review_batch(
    services: ServicesDep,
    current_user: OrganiserDep,
    limit: int | None = Query(None, ge=1, le=50),
) -> list[ApplicantResponse]:
    """Applicants the current reviewer should score next, oldest first."""
    applicants = await services.assignment.get_k_random_to_review(current_user.auth_id, limit)
    return [ApplicantResponse.model_validate(applicant) for applicant in applicants]


@router.post("/submit", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def submit_review(review: ReviewCreate, services: ServicesDep, current_user: OrganiserDep) -> ReviewResponse:
    """Record the current reviewer's score for an applicant."""
    stored = await services.reviews.record_review(review.applicant_id, current_user.auth_id, review.average_score)
    return ReviewResponse.model_validate(stored)
