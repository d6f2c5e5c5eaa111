"""Database models - all models and enums in a single module."""
import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from hackportal.dependencies.database import Base


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class ApplicantStatus(enum.IntEnum):
    """Applicant lifecycle status. Ordering is meaningful: lower values are earlier in the process."""

    APPLIED = 0
    INVITED = 1
    CONFIRMED = 2
    REJECTED = 3
    CANCELLED = 4
    ADMITTED = 5


class TShirtSize(enum.Enum):
    """T-shirt sizes offered on the application form."""

    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"
    XXL = "2XL"


class IntEnumType(TypeDecorator):
    """Store an IntEnum as its integer value so the database can compare statuses with <= and >=."""

    impl = Integer
    cache_ok = True

    def __init__(self, enum_class: type[enum.IntEnum], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._enum_class = enum_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._enum_class(value)


# -----------------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------------


class Applicant(Base):
    """A hackathon application."""

    __tablename__ = "applicants"

    id = Column(Uuid, primary_key=True, default=uuid4, index=True)
    auth_id = Column(String(255), unique=True, nullable=False, index=True)
    age = Column(Integer, nullable=False)
    gender = Column(String(255), nullable=False)
    nationality = Column(String(255), nullable=False)
    country = Column(String(255), nullable=False)
    city = Column(String(255), nullable=False)
    university = Column(String(255), nullable=False)
    degree = Column(String(255), nullable=False)
    year_of_study = Column(String(255), nullable=False)
    work_area = Column(String(255), nullable=False)
    skills = Column(Text, nullable=True)
    hackathon_count = Column(Integer, nullable=True)
    why_choose_hacker = Column(Text, nullable=True)
    past_projects = Column(Text, nullable=True)
    hardware_requests = Column(Text, nullable=True)
    dietary_requirements = Column(String(255), nullable=False)
    t_shirt_size = Column(String(4), nullable=False)
    hear_about = Column(String(255), nullable=False)
    cv = Column(String(512), nullable=True)  # object storage key
    application_status = Column(IntEnumType(ApplicantStatus), default=ApplicantStatus.APPLIED, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    reviews = relationship("Review", back_populates="applicant", cascade="all, delete-orphan", passive_deletes=True)


class Review(Base):
    """One reviewer's score for one applicant."""

    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid4, index=True)
    applicant_id = Column(Uuid, ForeignKey("applicants.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_auth_id = Column(String(255), nullable=False, index=True)
    average_score = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    applicant = relationship("Applicant", back_populates="reviews")

    __table_args__ = (UniqueConstraint("applicant_id", "created_by_auth_id", name="uq_review_applicant_reviewer"),)
