"""Selects which applicants a reviewer should score next."""
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from hackportal.config import Settings
from hackportal.dependencies.database import DatabaseSessionManager
from hackportal.exceptions import StorageError
from hackportal.models import Applicant, ApplicantStatus, Review

logger = logging.getLogger(__name__)


def build_review_batch_query(reviewer_id: str, limit: int, reviews_per_applicant: int):
    """
    Build the select for a reviewer's next batch.

    An applicant is eligible when:
    - its status is APPLIED
    - it has fewer than ``reviews_per_applicant`` reviews in total
    - ``reviewer_id`` has not reviewed it yet

    Oldest applications come first.
    """
    fully_reviewed = (
        select(Review.applicant_id)
        .group_by(Review.applicant_id)
        .having(func.count(Review.applicant_id) >= reviews_per_applicant)
    )
    reviewed_by_reviewer = select(Review.applicant_id).where(Review.created_by_auth_id == reviewer_id)

    return (
        select(Applicant)
        .where(
            Applicant.id.not_in(fully_reviewed),
            Applicant.id.not_in(reviewed_by_reviewer),
            Applicant.application_status == ApplicantStatus.APPLIED,
        )
        .order_by(Applicant.created_at.asc())
        .limit(limit)
    )


class ReviewAssignmentEngine:
    """Fair selection of under-reviewed applicants for a reviewer."""

    def __init__(self, sessionmanager: DatabaseSessionManager, settings: Settings):
        self._sessionmanager = sessionmanager
        self._settings = settings

    async def get_k_random_to_review(self, reviewer_id: str, choose_from_k: int | None = None) -> list[Applicant]:
        """
        Return up to ``choose_from_k`` applicants that ``reviewer_id`` should review next.

        Args:
            reviewer_id: Identity reference of the reviewer
            choose_from_k: Batch size, defaults to ``settings.review_batch_size``

        Returns:
            Applicants ordered by submission time, oldest first. When the query fails
            and ``settings.review_assignment_fail_soft`` is set, an empty list.

        Raises:
            StorageError: If the query fails and fail-soft is disabled
        """
        limit = self._settings.review_batch_size if choose_from_k is None else choose_from_k
        if limit <= 0:
            return []

        stmt = build_review_batch_query(reviewer_id, limit, self._settings.reviews_per_applicant)
        try:
            async with self._sessionmanager.transaction() as session:
                result = await session.execute(stmt)
                applicants = list(result.scalars().all())
        except SQLAlchemyError as e:
            if self._settings.review_assignment_fail_soft:
                logger.exception("Failed to select applicants to review", extra={"reviewer_id": reviewer_id})
                return []
            raise StorageError("Failed to select applicants to review") from e

        logger.debug(
            "Selected applicants to review",
            extra={"reviewer_id": reviewer_id, "count": len(applicants)},
        )
        return applicants
