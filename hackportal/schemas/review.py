import math
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, field_validator


class ReviewCreate(BaseModel):
    """Score submitted by a reviewer for one applicant."""

    applicant_id: UUID
    average_score: float

    @field_validator("average_score")
    @classmethod
    def score_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v


class ReviewResponse(BaseModel):
    id: UUID
    applicant_id: UUID
    created_by_auth_id: str
    average_score: float
    created_at: datetime

    class Config:
        from_attributes = True
