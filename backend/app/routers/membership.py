"""Membership applications: intake, status, librarian review.

Endpoints:
  POST /api/membership/apply                          → submit an application
  GET  /api/membership/applications                   → list (librarian dashboard)
  GET  /api/membership/applications/{id}              → status of one application
  POST /api/membership/applications/{id}/review       → record a decision

Design:
  - The wizard validates before sending, but this endpoint re-validates
    everything; the client gate is not a trust boundary.
  - Every rejection carries a plain `error` string the wizard shows as-is.
  - Emails are best-effort: a mail failure never fails the submission.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.middleware.exceptions import ApplicationRejected, ResourceNotFoundError
from app.models.membership_application import (
    OPEN_STATUSES,
    ApplicationStatus,
    MembershipApplication,
)
from app.schemas.membership import (
    ApplicationPage,
    ApplicationStatusView,
    ApplicationSubmitted,
    MembershipApplicationCreate,
    ReviewRequest,
    collect_errors,
)
from app.services.email import EmailService, get_email_service
from app.utils.numbering import generate_application_reference

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS = (
    "firstName", "lastName", "email", "phone", "street",
    "city", "state", "zipCode", "country", "dateOfBirth",
    "gender", "preferredGenres", "readingFrequency",
)


# ── Helpers ──────────────────────────────────────────────────

async def _get_application(db: AsyncSession, application_id: str) -> MembershipApplication:
    result = await db.execute(
        select(MembershipApplication).where(
            or_(
                MembershipApplication.id == application_id,
                MembershipApplication.reference == application_id,
            )
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise ResourceNotFoundError("Membership application", application_id)
    return application


async def _email_registered(db: AsyncSession, email: str) -> bool:
    result = await db.execute(
        select(MembershipApplication.id)
        .where(func.lower(MembershipApplication.email) == email.lower())
        .where(MembershipApplication.status.in_(OPEN_STATUSES))
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


def _parse_status(value: str) -> ApplicationStatus:
    try:
        return ApplicationStatus(value.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in ApplicationStatus)
        raise ApplicationRejected(
            f"Invalid status: {value} (expected one of {allowed})",
            error_code="INVALID_STATUS",
        )


# ── POST /api/membership/apply ───────────────────────────────

@router.post(
    "/apply",
    response_model=ApplicationSubmitted,
    status_code=status.HTTP_201_CREATED,
)
async def apply(
    body: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
):
    """Accept a membership application from the wizard."""
    for field in REQUIRED_FIELDS:
        if not body.get(field):
            raise ApplicationRejected(
                f"Missing required field: {field}", error_code="MISSING_FIELD"
            )

    errors = collect_errors(MembershipApplicationCreate, body)
    if errors:
        raise ApplicationRejected(next(iter(errors.values())), error_code="INVALID_FIELD")
    data = MembershipApplicationCreate.model_validate(body)

    if await _email_registered(db, data.email):
        raise ApplicationRejected("Email already registered", error_code="DUPLICATE_EMAIL")

    application = MembershipApplication(
        reference=generate_application_reference(),
        first_name=data.first_name,
        last_name=data.last_name,
        date_of_birth=data.date_of_birth,
        gender=data.gender.value,
        email=data.email,
        phone=data.phone,
        alternate_phone=data.alternate_phone or None,
        street=data.street,
        city=data.city,
        state=data.state,
        zip_code=data.zip_code,
        country=data.country,
        has_disability=data.has_disability,
        disability_details=data.disability_details or None,
        preferred_genres=", ".join(data.preferred_genres),
        reading_frequency=data.reading_frequency.value,
        subscribe_newsletter=data.subscribe_newsletter,
        id_document=data.id_document,
        proof_of_address=data.proof_of_address,
        additional_documents=data.additional_documents,
        application_fee=data.application_fee,
        status=ApplicationStatus.PENDING,
    )
    db.add(application)
    await db.flush()
    logger.info("Membership application %s received from %s", application.reference, application.email)

    await mailer.send_application_received(application)
    await mailer.send_librarian_notification(application)

    return ApplicationSubmitted(
        application_id=application.id,
        reference=application.reference,
        application_fee=application.application_fee,
    )


# ── GET /api/membership/applications ─────────────────────────

@router.get("/applications", response_model=ApplicationPage)
async def list_applications(
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Applications, newest first, optionally filtered by status."""
    query = select(MembershipApplication)
    count_query = select(func.count(MembershipApplication.id))
    if status_filter:
        wanted = _parse_status(status_filter)
        query = query.where(MembershipApplication.status == wanted)
        count_query = count_query.where(MembershipApplication.status == wanted)

    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(
        query.order_by(MembershipApplication.created_at.desc()).limit(limit).offset(offset)
    )
    items = [ApplicationStatusView.model_validate(a) for a in result.scalars().all()]
    return ApplicationPage(items=items, total=total, limit=limit, offset=offset)


# ── GET /api/membership/applications/{id} ────────────────────

@router.get("/applications/{application_id}", response_model=ApplicationStatusView)
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Status of one application, by id or APP- reference."""
    return await _get_application(db, application_id)


# ── POST /api/membership/applications/{id}/review ────────────

@router.post("/applications/{application_id}/review", response_model=ApplicationStatusView)
async def review_application(
    application_id: str,
    body: ReviewRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
):
    """Record a librarian decision and tell the applicant."""
    new_status = _parse_status(body.status)
    application = await _get_application(db, application_id)

    application.status = new_status
    application.review_notes = body.review_notes or None
    application.reviewed_by = body.reviewed_by
    application.reviewed_at = datetime.utcnow()
    await db.flush()
    logger.info("Application %s marked %s", application.reference, new_status.value)

    await mailer.send_status_update(application)
    return application
