"""Service for recording reviewer scores."""
import logging
import math
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hackportal.config import Settings
from hackportal.dependencies.database import DatabaseSessionManager
from hackportal.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from hackportal.models import Applicant, Review

logger = logging.getLogger(__name__)


class ReviewService:
    """Stores one review per (reviewer, applicant) pair."""

    def __init__(self, sessionmanager: DatabaseSessionManager, settings: Settings):
        self._sessionmanager = sessionmanager
        self._settings = settings

    def _validate_score(self, average_score: float) -> None:
        max_score = self._settings.review_max_score
        if not math.isfinite(average_score) or not 0 <= average_score <= max_score:
            raise ValidationError(
                "Invalid review score",
                [f"average_score: must be between 0 and {max_score}"],
            )

    async def record_review(self, applicant_id: UUID, reviewer_id: str, average_score: float) -> Review:
        """
        Record ``reviewer_id``'s score for an applicant.

        The applicant row is locked for the duration of the transaction so that
        concurrent reviews of the same applicant are counted one after another.

        Args:
            applicant_id: Reviewed applicant UUID
            reviewer_id: Identity reference of the reviewer
            average_score: Score as computed by the caller, stored verbatim

        Returns:
            The stored Review

        Raises:
            ValidationError: If the score is out of range
            NotFoundError: If the applicant does not exist
            ConflictError: If the reviewer already reviewed the applicant, or the
                applicant already has enough reviews
            StorageError: On any other database failure
        """
        self._validate_score(average_score)

        try:
            async with self._sessionmanager.transaction() as session:
                applicant_stmt = select(Applicant.id).where(Applicant.id == applicant_id).with_for_update()
                applicant_result = await session.execute(applicant_stmt)
                if applicant_result.scalar_one_or_none() is None:
                    raise NotFoundError(f"Applicant {applicant_id} not found")

                existing_stmt = select(Review.id).where(
                    Review.applicant_id == applicant_id,
                    Review.created_by_auth_id == reviewer_id,
                )
                existing_result = await session.execute(existing_stmt)
                if existing_result.scalar_one_or_none() is not None:
                    raise ConflictError("You have already reviewed this applicant")

                count_stmt = select(func.count(Review.id)).where(Review.applicant_id == applicant_id)
                review_count = (await session.execute(count_stmt)).scalar_one()
                if review_count >= self._settings.reviews_per_applicant:
                    raise ConflictError("Applicant has already been reviewed enough times")

                review = Review(
                    applicant_id=applicant_id,
                    created_by_auth_id=reviewer_id,
                    average_score=average_score,
                )
                session.add(review)
                try:
                    await session.flush()
                except IntegrityError as e:
                    raise ConflictError("You have already reviewed this applicant") from e
                await session.refresh(review)
        except ConflictError:
            logger.info("Rejected review", extra={"applicant_id": str(applicant_id), "reviewer_id": reviewer_id})
            raise
        except SQLAlchemyError as e:
            raise StorageError("Failed to save review") from e

        logger.info("Recorded review", extra={"applicant_id": str(applicant_id), "reviewer_id": reviewer_id})
        return review

    async def get_reviews_for_applicant(self, applicant_id: UUID) -> list[Review]:
        try:
            async with self._sessionmanager.transaction() as session:
                stmt = select(Review).where(Review.applicant_id == applicant_id).order_by(Review.created_at.asc())
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("Failed to load reviews") from e
