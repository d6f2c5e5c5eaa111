"""Organiser endpoints: overview, manage, check-in."""
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from hackportal.dependencies.auth import OrganiserDep
from hackportal.dependencies.services import ServicesDep
from hackportal.schemas.applicant import ApplicantListResponse, ApplicantResponse, StatusOverview, StatusUpdate
from hackportal.services.application_flow import checkin, set_status

router = APIRouter(prefix="/admin", tags=["admin"])

MANAGE_COLUMNS = ["id", "auth_id", "university", "year_of_study", "application_status", "created_at"]


@router.get("/overview", response_model=StatusOverview)
async def overview(services: ServicesDep, current_user: OrganiserDep) -> StatusOverview:
    """Number of applicants in each status."""
    counts = await services.applicants.count_by_status()
    return StatusOverview(
        counts={status_.name: count for status_, count in counts.items()},
        total=sum(counts.values()),
    )


@router.get("/manage", response_model=ApplicantListResponse)
async def manage(
    services: ServicesDep,
    current_user: OrganiserDep,
    order_by: str = Query("created_at"),
    order_direction: str = Query("ASC", pattern="^(ASC|DESC)$"),
) -> ApplicantListResponse:
    """List applicants with the columns shown on the manage page."""
    try:
        items, total = await services.applicants.get_all_and_count_selection(MANAGE_COLUMNS, order_by, order_direction)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return ApplicantListResponse(items=items, total=total)


@router.get("/manage/{applicant_id}", response_model=ApplicantResponse)
async def manage_application(applicant_id: UUID, services: ServicesDep, current_user: OrganiserDep) -> ApplicantResponse:
    applicant = await services.applicants.find_one(applicant_id)
    return ApplicantResponse.model_validate(applicant)


@router.post("/manage/{applicant_id}/status", response_model=ApplicantResponse)
async def update_status(
    applicant_id: UUID,
    update: StatusUpdate,
    services: ServicesDep,
    current_user: OrganiserDep,
) -> ApplicantResponse:
    """Set an applicant's status (invite, reject, ...)."""
    applicant = await set_status(services.applicants, applicant_id, update.application_status)
    return ApplicantResponse.model_validate(applicant)


@router.put("/checkin/{applicant_id}")
async def checkin_endpoint(applicant_id: str, services: ServicesDep, current_user: OrganiserDep) -> dict[str, str]:
    """Check a confirmed hacker in at the venue."""
    await checkin(services.applicants, applicant_id)
    return {"message": "Hacker checked in!"}
