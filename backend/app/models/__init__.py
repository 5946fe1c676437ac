"""Aggregate model imports for Alembic auto-detection."""

from app.models.membership_application import (  # noqa: F401
    ApplicationStatus,
    MembershipApplication,
)
