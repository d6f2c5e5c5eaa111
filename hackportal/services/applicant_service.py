"""Service for the applicant lifecycle: lookup, validation, save and delete."""
import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import load_only

from hackportal.config import Settings
from hackportal.dependencies.database import DatabaseSessionManager
from hackportal.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from hackportal.models import Applicant, ApplicantStatus
from hackportal.schemas.applicant import ApplicantRecord, DeleteResult
from hackportal.services.review_assignment import ReviewAssignmentEngine
from hackportal.services.storage.base import StorageBackend

logger = logging.getLogger(__name__)

# Columns that uniquely identify an applicant
LOOKUP_COLUMNS = ("id", "auth_id")
SELECTABLE_COLUMNS = tuple(column.key for column in Applicant.__table__.columns)


def validate_applicant(applicant: Applicant) -> list[str]:
    """
    Check an applicant's fields and return every violation as ``"<field>: <message>"``.

    An empty list means the applicant is valid.
    """
    try:
        ApplicantRecord.model_validate(applicant)
    except PydanticValidationError as e:
        return [f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in e.errors()]
    return []


def _check_columns(columns: list[str] | tuple[str, ...]) -> None:
    unknown = [column for column in columns if column not in SELECTABLE_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown applicant columns: {', '.join(unknown)}")


class ApplicantService:
    """Owns applicant persistence and the CV blobs that belong to applicants."""

    def __init__(
        self,
        sessionmanager: DatabaseSessionManager,
        storage: StorageBackend,
        settings: Settings,
        assignment_engine: ReviewAssignmentEngine | None = None,
    ):
        self._sessionmanager = sessionmanager
        self._storage = storage
        self._settings = settings
        self._assignment_engine = assignment_engine or ReviewAssignmentEngine(sessionmanager, settings)

    async def get_all(self, columns: list[str] | None = None) -> list[Applicant]:
        """Return every applicant, loading only ``columns`` when given."""
        stmt = select(Applicant)
        if columns:
            _check_columns(columns)
            stmt = stmt.options(load_only(*(getattr(Applicant, column) for column in columns)))
        try:
            async with self._sessionmanager.transaction() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("Failed to get all applicants") from e

    async def get_all_and_count_selection(
        self,
        columns: list[str],
        order_by: str | None = None,
        order_direction: str = "ASC",
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Return the selected columns of every applicant together with the total count.

        Args:
            columns: Applicant columns to return
            order_by: Optional column to sort by
            order_direction: "ASC" or "DESC"

        Returns:
            Tuple of (rows as dicts, total number of applicants)
        """
        _check_columns(columns)
        stmt = select(*(getattr(Applicant, column) for column in columns))
        if order_by:
            _check_columns([order_by])
            order_column = getattr(Applicant, order_by)
            if order_direction.upper() == "DESC":
                stmt = stmt.order_by(order_column.desc())
            elif order_direction.upper() == "ASC":
                stmt = stmt.order_by(order_column.asc())
            else:
                raise ValueError(f"Invalid order direction: {order_direction}")

        try:
            async with self._sessionmanager.transaction() as session:
                rows = (await session.execute(stmt)).mappings().all()
                total = (await session.execute(select(func.count()).select_from(Applicant))).scalar_one()
        except SQLAlchemyError as e:
            raise StorageError("Failed to get the list of applications") from e

        return [dict(row) for row in rows], total

    async def count_by_status(self) -> dict[ApplicantStatus, int]:
        """Count applicants per status. Statuses with no applicants are reported as 0."""
        stmt = select(Applicant.application_status, func.count(Applicant.id)).group_by(Applicant.application_status)
        try:
            async with self._sessionmanager.transaction() as session:
                result = await session.execute(stmt)
                counts = {status: count for status, count in result.all()}
        except SQLAlchemyError as e:
            raise StorageError("Failed to count applicants") from e

        return {status: counts.get(status, 0) for status in ApplicantStatus}

    async def find_one(self, key: UUID | str, by: str = "id") -> Applicant:
        """
        Find an applicant by id or by another unique column.

        Args:
            key: Value to look up
            by: Column to match, one of LOOKUP_COLUMNS

        Raises:
            NotFoundError: If no applicant matches
        """
        if by not in LOOKUP_COLUMNS:
            raise ValueError(f"Cannot look up applicants by {by}")

        if by == "id" and not isinstance(key, UUID):
            try:
                key = UUID(str(key))
            except ValueError:
                raise NotFoundError("Applicant does not exist")

        stmt = select(Applicant).where(getattr(Applicant, by) == key)
        try:
            async with self._sessionmanager.transaction() as session:
                result = await session.execute(stmt)
                applicant = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError("Failed to find an applicant") from e

        if applicant is None:
            raise NotFoundError("Applicant does not exist")
        return applicant

    async def save(self, applicant: Applicant, cv_file: bytes | None = None) -> Applicant:
        """
        Validate and store an applicant, uploading its CV first when one is given.

        The CV is uploaded under ``applicant.cv`` before the record is written so a
        stored applicant never references a missing blob.

        Args:
            applicant: New or previously loaded applicant
            cv_file: CV content to upload under ``applicant.cv``

        Returns:
            The stored applicant, with id and timestamps set

        Raises:
            ValidationError: If any field is invalid
            ConflictError: If another applicant already exists for ``applicant.auth_id``
            StorageError: If the CV upload or the database write fails
        """
        if applicant.application_status is None:
            applicant.application_status = ApplicantStatus.APPLIED

        violations = validate_applicant(applicant)
        if cv_file is not None and len(cv_file) > self._settings.storage_max_size:
            violations.append(f"cv: file must be at most {self._settings.storage_max_size} bytes")
        if violations:
            logger.info("Applicant failed validation", extra={"violations": violations})
            raise ValidationError("Failed to validate applicant", violations)

        uploaded_key: str | None = None
        try:
            async with self._sessionmanager.transaction() as session:
                persisted_cv = None
                if applicant.id is None:
                    existing_stmt = select(Applicant.id).where(Applicant.auth_id == applicant.auth_id)
                    if (await session.execute(existing_stmt)).scalar_one_or_none() is not None:
                        raise ConflictError("An application already exists for this user")
                else:
                    persisted_stmt = select(Applicant.cv).where(Applicant.id == applicant.id)
                    persisted_cv = (await session.execute(persisted_stmt)).scalar_one_or_none()

                if cv_file is not None and applicant.cv:
                    try:
                        await self._storage.upload(applicant.cv, cv_file)
                    except Exception as e:
                        raise StorageError("Failed to save applicant CV") from e
                    # The stored record still points at its own key after a rollback
                    if applicant.cv != persisted_cv:
                        uploaded_key = applicant.cv

                stored = await session.merge(applicant)
                try:
                    await session.flush()
                except IntegrityError as e:
                    raise ConflictError("An application already exists for this user") from e
                await session.refresh(stored)
        except (ConflictError, StorageError):
            await self._cleanup_upload(uploaded_key)
            raise
        except SQLAlchemyError as e:
            await self._cleanup_upload(uploaded_key)
            raise StorageError("Failed to save applicant") from e

        logger.info(
            "Saved applicant",
            extra={"applicant_id": str(stored.id), "application_status": stored.application_status.name},
        )
        return stored

    async def _cleanup_upload(self, key: str | None) -> None:
        if key is None:
            return
        try:
            await self._storage.delete(key)
        except Exception:
            logger.exception("Failed to remove CV after failed save", extra={"cv": key})

    async def delete(self, applicant_id: UUID | str) -> DeleteResult:
        """
        Delete an applicant and, best effort, its CV.

        Callers only delete applicants whose status is APPLIED or earlier; later
        applicants are cancelled instead.

        Raises:
            NotFoundError: If the applicant does not exist
            StorageError: If the database delete fails
        """
        try:
            applicant_id = applicant_id if isinstance(applicant_id, UUID) else UUID(str(applicant_id))
        except ValueError:
            raise NotFoundError("Failed to find applicant using the provided ID")

        try:
            async with self._sessionmanager.transaction() as session:
                result = await session.execute(select(Applicant).where(Applicant.id == applicant_id))
                applicant = result.scalar_one_or_none()
                if applicant is None:
                    raise NotFoundError("Failed to find applicant using the provided ID")

                if applicant.cv:
                    try:
                        await self._storage.delete(applicant.cv)
                    except Exception:
                        logger.exception("Failed to remove the applicant's CV", extra={"cv": applicant.cv})

                delete_result = await session.execute(delete(Applicant).where(Applicant.id == applicant_id))
        except SQLAlchemyError as e:
            raise StorageError("Failed to remove an applicant") from e

        logger.info("Deleted applicant", extra={"applicant_id": str(applicant_id)})
        return DeleteResult(deleted=delete_result.rowcount)

    async def get_k_random_to_review(self, reviewer_id: str, choose_from_k: int | None = None) -> list[Applicant]:
        return await self._assignment_engine.get_k_random_to_review(reviewer_id, choose_from_k)
