"""Pytest configuration and shared fixtures."""

import pytest

from llm_scorecard.config import Settings
from llm_scorecard.schemas.constraints import Constraints, RecordSchema


@pytest.fixture
def mock_settings(tmp_path):
    """Create a Settings instance for testing."""
    return Settings(
        log_level="DEBUG",
        results_dir=str(tmp_path / "results"),
    )


@pytest.fixture
def user_schema():
    """Schema for generated user profiles."""
    return RecordSchema.model_validate(
        {
            "name": "user_profiles",
            "description": "Synthetic user profiles",
            "count": 3,
            "fields": [
                {"name": "id", "type": "integer"},
                {"name": "email", "type": "string"},
                {"name": "age", "type": "integer"},
                {"name": "active", "type": "boolean"},
            ],
        }
    )


@pytest.fixture
def user_constraints():
    """Rules for generated user profiles."""
    return Constraints.model_validate(
        {
            "schema": "user_profiles",
            "rules": [
                {"field": "id", "rule": "unique"},
                {"field": "email", "rule": "pattern", "regex": r"^[^@\s]+@[^@\s]+\.[a-z]+$"},
                {"field": "age", "rule": "range", "min": 18, "max": 99},
            ],
        }
    )


@pytest.fixture
def valid_users():
    """Three records that satisfy the user schema and rules."""
    return [
        {"id": 1, "email": "ana@example.com", "age": 34, "active": True},
        {"id": 2, "email": "bo@example.org", "age": 27, "active": False},
        {"id": 3, "email": "cy@example.net", "age": 61, "active": True},
    ]
