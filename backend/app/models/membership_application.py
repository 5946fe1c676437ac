"""Submitted membership applications awaiting librarian review.

One row per submission. Document columns hold the sentinel string sent by
the wizard ("Documents uploaded") or NULL; file contents are uploaded
through a separate channel.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that block a second application for the same email
OPEN_STATUSES = (
    ApplicationStatus.PENDING,
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.APPROVED,
)


class MembershipApplication(Base):
    __tablename__ = "membership_applications"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    reference: Mapped[str] = mapped_column(String(40), unique=True, index=True)

    # Personal
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    date_of_birth: Mapped[str] = mapped_column(String(20))
    gender: Mapped[str] = mapped_column(String(20))

    # Contact
    email: Mapped[str] = mapped_column(String(255), index=True)
    phone: Mapped[str] = mapped_column(String(30))
    alternate_phone: Mapped[str | None] = mapped_column(String(30))

    # Address
    street: Mapped[str] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(100))
    state: Mapped[str] = mapped_column(String(100))
    zip_code: Mapped[str] = mapped_column(String(20))
    country: Mapped[str] = mapped_column(String(100))

    # Preferences
    has_disability: Mapped[bool] = mapped_column(Boolean, default=False)
    disability_details: Mapped[str | None] = mapped_column(Text)
    preferred_genres: Mapped[str] = mapped_column(Text, default="")
    reading_frequency: Mapped[str] = mapped_column(String(20))
    subscribe_newsletter: Mapped[bool] = mapped_column(Boolean, default=False)

    # Documents (sentinel or NULL)
    id_document: Mapped[str | None] = mapped_column(String(50))
    proof_of_address: Mapped[str | None] = mapped_column(String(50))
    additional_documents: Mapped[str | None] = mapped_column(String(50))

    application_fee: Mapped[float] = mapped_column(Float, default=0.0)

    # Review
    status: Mapped[ApplicationStatus] = mapped_column(
        SAEnum(ApplicationStatus), default=ApplicationStatus.PENDING, index=True
    )
    review_notes: Mapped[str | None] = mapped_column(Text)
    reviewed_by: Mapped[str | None] = mapped_column(String(255))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def genre_list(self) -> list[str]:
        return [g.strip() for g in self.preferred_genres.split(",") if g.strip()]
