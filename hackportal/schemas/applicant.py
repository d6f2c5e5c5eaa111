from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hackportal.models import ApplicantStatus, TShirtSize

TEXT_MAX_LENGTH = 16000


def _validate_non_negative_int(v: int | None) -> int | None:
    """Counts and ages must be 0 or positive."""
    if v is None:
        return None
    if v < 0:
        raise ValueError("must be 0 or positive")
    return v


def _validate_t_shirt_size(v: str) -> str:
    valid = {size.value for size in TShirtSize}
    if v not in valid:
        raise ValueError(f"must be one of {', '.join(sorted(valid))}")
    return v


class ApplicantRecord(BaseModel):
    """Field constraints an Applicant must satisfy before it is stored."""

    model_config = ConfigDict(from_attributes=True)

    auth_id: str = Field(..., min_length=1, max_length=255)
    age: int
    gender: str = Field(..., min_length=1, max_length=255)
    nationality: str = Field(..., min_length=1, max_length=255)
    country: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    university: str = Field(..., min_length=1, max_length=255)
    degree: str = Field(..., min_length=1, max_length=255)
    year_of_study: str = Field(..., min_length=1, max_length=255)
    work_area: str = Field(..., min_length=1, max_length=255)
    skills: str | None = Field(None, max_length=TEXT_MAX_LENGTH)
    hackathon_count: int | None = None
    why_choose_hacker: str | None = Field(None, max_length=TEXT_MAX_LENGTH)
    past_projects: str | None = Field(None, max_length=TEXT_MAX_LENGTH)
    hardware_requests: str | None = Field(None, max_length=TEXT_MAX_LENGTH)
    dietary_requirements: str = Field(..., min_length=1, max_length=255)
    t_shirt_size: str
    hear_about: str = Field(..., min_length=1, max_length=255)
    cv: str | None = Field(None, min_length=1, max_length=512)
    application_status: ApplicantStatus

    @field_validator("age", "hackathon_count")
    @classmethod
    def non_negative(cls, v: int | None) -> int | None:
        return _validate_non_negative_int(v)

    @field_validator("t_shirt_size")
    @classmethod
    def t_shirt_size_valid(cls, v: str) -> str:
        return _validate_t_shirt_size(v)


class ApplicationSubmission(BaseModel):
    """Application form as submitted by the applicant.

    The ``*_other`` fields carry free text typed next to an "Other" choice and take
    precedence over the choice itself.
    """

    age: int
    gender: str | None = None
    gender_other: str | None = None
    nationality: str = Field(..., min_length=1, max_length=255)
    country: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    university: str = Field(..., min_length=1, max_length=255)
    degree: str = Field(..., min_length=1, max_length=255)
    year_of_study: str = Field(..., min_length=1, max_length=255)
    work_area: str | None = None
    work_area_other: str | None = None
    skills: str | None = None
    hackathon_count: int | None = None
    why_choose_hacker: str | None = None
    past_projects: str | None = None
    hardware_requests: str | None = None
    dietary_requirements: str | None = None
    dietary_requirements_other: str | None = None
    t_shirt_size: str
    hear_about: str | None = None
    hear_about_other: str | None = None

    @field_validator("age", "hackathon_count")
    @classmethod
    def non_negative(cls, v: int | None) -> int | None:
        return _validate_non_negative_int(v)

    @field_validator("hackathon_count", mode="before")
    @classmethod
    def blank_count_is_none(cls, v):
        # Non-numeric answers are treated as "not answered"
        if isinstance(v, str):
            v = v.strip()
            try:
                return int(v)
            except ValueError:
                return None
        return v

    @field_validator("t_shirt_size")
    @classmethod
    def t_shirt_size_valid(cls, v: str) -> str:
        return _validate_t_shirt_size(v)


class ApplicantResponse(BaseModel):
    """Schema for applicant response."""

    id: UUID
    auth_id: str
    age: int
    gender: str
    nationality: str
    country: str
    city: str
    university: str
    degree: str
    year_of_study: str
    work_area: str
    skills: str | None
    hackathon_count: int | None
    why_choose_hacker: str | None
    past_projects: str | None
    hardware_requests: str | None
    dietary_requirements: str
    t_shirt_size: str
    hear_about: str
    cv: str | None
    application_status: ApplicantStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ApplicantListResponse(BaseModel):
    """Schema for the admin selection list."""

    items: list[dict]
    total: int


class StatusUpdate(BaseModel):
    application_status: ApplicantStatus


class StatusOverview(BaseModel):
    counts: dict[str, int]
    total: int


class DeleteResult(BaseModel):
    deleted: int
