from datetime import datetime

import pytest
from pydantic import ValidationError

from hackportal.config import Settings


def test_applications_open_without_window():
    assert Settings(applications_open=None, applications_close=None).applications_are_open()


def test_applications_window():
    settings = Settings(
        applications_open=datetime(2026, 1, 1),
        applications_close=datetime(2026, 2, 1),
    )

    assert not settings.applications_are_open(datetime(2025, 12, 31))
    assert settings.applications_are_open(datetime(2026, 1, 15))
    assert not settings.applications_are_open(datetime(2026, 2, 2))


def test_invalid_environment():
    with pytest.raises(ValidationError):
        Settings(environment="staging")


@pytest.mark.parametrize("field", ["review_batch_size", "reviews_per_applicant"])
def test_review_sizes_must_be_positive(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("REVIEWS_PER_APPLICANT", "3")
    monkeypatch.setenv("REVIEW_ASSIGNMENT_FAIL_SOFT", "false")

    settings = Settings()

    assert settings.reviews_per_applicant == 3
    assert settings.review_assignment_fail_soft is False
