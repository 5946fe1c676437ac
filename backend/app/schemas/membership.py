"""Pydantic schemas for the membership application.

ApplicationDraft is lenient so a half-filled wizard is representable and
can be saved. The strict variants enforce the field rules:

  MembershipApplicationForm    → wizard side, documents as attached files
  MembershipApplicationCreate  → endpoint side, documents as sentinel strings

All models speak camelCase on the wire (firstName, zipCode, ...).
"""

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from app.models.membership_application import ApplicationStatus
from app.schemas.validators import (
    validate_email,
    validate_min_length,
    validate_required,
    validate_zip_code,
)
from app.wizard.fees import generate_application_fee

DOCUMENT_SENTINEL = "Documents uploaded"

GENRES = (
    "Fiction",
    "Non-Fiction",
    "Mystery",
    "Romance",
    "Science Fiction",
    "Fantasy",
    "Biography",
    "History",
    "Self-Help",
    "Technology",
    "Art",
    "Poetry",
    "Drama",
    "Children's Books",
    "Young Adult",
)


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


class ReadingFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    OCCASIONALLY = "occasionally"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Draft (lenient) ─────────────────────────────────────────

class ApplicationDraft(CamelModel):
    """Everything the wizard persists. File attachments live elsewhere."""

    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    gender: Gender | None = None

    email: str = ""
    phone: str = ""
    alternate_phone: str = ""

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    has_disability: bool = False
    disability_details: str = ""
    preferred_genres: list[str] = Field(default_factory=list)
    reading_frequency: ReadingFrequency | None = None

    agree_to_terms: bool = False
    subscribe_newsletter: bool = True
    # Generated once per draft; carried through save/load untouched
    application_fee: float = Field(default_factory=generate_application_fee)


# ── Strict rules ────────────────────────────────────────────

class _ApplicantRules(CamelModel):
    """Field rules shared by the wizard form and the endpoint payload."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, validate_default=True
    )

    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    gender: Gender | None = None

    email: str = ""
    phone: str = ""
    alternate_phone: str | None = None

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    has_disability: bool = False
    disability_details: str | None = None
    preferred_genres: list[str] = Field(default_factory=list)
    reading_frequency: ReadingFrequency | None = None

    agree_to_terms: bool = False
    subscribe_newsletter: bool = False
    application_fee: float = 0.0

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, v: str) -> str:
        return validate_min_length(v, 2, "First name must be at least 2 characters")

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, v: str) -> str:
        return validate_min_length(v, 2, "Last name must be at least 2 characters")

    @field_validator("date_of_birth")
    @classmethod
    def _date_of_birth(cls, v: str) -> str:
        return validate_required(v, "Date of birth is required")

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, v: Any) -> Any:
        if isinstance(v, Gender):
            return v
        if not isinstance(v, str) or v not in {g.value for g in Gender}:
            raise ValueError("Please select a gender")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return validate_min_length(v, 10, "Phone number must be at least 10 digits")

    @field_validator("street")
    @classmethod
    def _street(cls, v: str) -> str:
        return validate_min_length(v, 5, "Street address is required")

    @field_validator("city")
    @classmethod
    def _city(cls, v: str) -> str:
        return validate_min_length(v, 2, "City is required")

    @field_validator("state")
    @classmethod
    def _state(cls, v: str) -> str:
        return validate_min_length(v, 2, "State is required")

    @field_validator("zip_code")
    @classmethod
    def _zip_code(cls, v: str) -> str:
        return validate_zip_code(v)

    @field_validator("country")
    @classmethod
    def _country(cls, v: str) -> str:
        return validate_min_length(v, 2, "Country is required")

    @field_validator("preferred_genres")
    @classmethod
    def _genres(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("Select at least one genre")
        unknown = [g for g in v if g not in GENRES]
        if unknown:
            raise ValueError(f"Unknown genre: {unknown[0]}")
        return v

    @field_validator("reading_frequency", mode="before")
    @classmethod
    def _reading_frequency(cls, v: Any) -> Any:
        if isinstance(v, ReadingFrequency):
            return v
        if not isinstance(v, str) or v not in {f.value for f in ReadingFrequency}:
            raise ValueError("Please select a reading frequency")
        return v

    @field_validator("application_fee")
    @classmethod
    def _fee(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Application fee must be non-negative")
        return v

    @field_validator("agree_to_terms")
    @classmethod
    def _terms(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("You must agree to the terms")
        return v


class MembershipApplicationForm(_ApplicantRules):
    """Complete wizard form; document slots hold attached file handles."""

    id_document: list[Any] = Field(default_factory=list)
    proof_of_address: list[Any] = Field(default_factory=list)
    additional_documents: list[Any] = Field(default_factory=list)

    @field_validator("id_document")
    @classmethod
    def _id_document(cls, v: list) -> list:
        if len(v) < 1:
            raise ValueError("Please upload a valid ID document")
        return v

    @field_validator("proof_of_address")
    @classmethod
    def _proof_of_address(cls, v: list) -> list:
        if len(v) < 1:
            raise ValueError("Please upload proof of address")
        return v


class MembershipApplicationCreate(_ApplicantRules):
    """JSON body accepted by POST /api/membership/apply."""

    id_document: str | None = None
    proof_of_address: str | None = None
    additional_documents: str | None = None

    @field_validator("id_document")
    @classmethod
    def _id_document(cls, v: str | None) -> str | None:
        if not v:
            raise ValueError("Please upload a valid ID document")
        return v

    @field_validator("proof_of_address")
    @classmethod
    def _proof_of_address(cls, v: str | None) -> str | None:
        if not v:
            raise ValueError("Please upload proof of address")
        return v


# ── Error collection ────────────────────────────────────────

def field_names(model: type[BaseModel]) -> dict[str, str]:
    """Map both alias and attribute name to the attribute name."""
    names = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def collect_errors(model: type[BaseModel], data: dict) -> dict[str, str]:
    """Validate `data` against `model`; return {field_name: message}.

    One message per field, the first reported. An empty dict means valid.
    """
    try:
        model.model_validate(data)
    except ValidationError as exc:
        names = field_names(model)
        errors: dict[str, str] = {}
        for err in exc.errors():
            loc = err["loc"][0] if err["loc"] else "__root__"
            field = names.get(str(loc), str(loc))
            if field in errors:
                continue
            if err["type"] == "value_error":
                errors[field] = str(err["ctx"]["error"])
            else:
                errors[field] = err["msg"]
        return errors
    return {}


# ── Endpoint responses / requests ───────────────────────────

class ApplicationSubmitted(CamelModel):
    success: bool = True
    message: str = "Application submitted successfully"
    application_id: str
    reference: str
    application_fee: float


class ApplicationStatusView(CamelModel):
    id: str
    reference: str
    status: ApplicationStatus
    first_name: str
    last_name: str
    email: str
    application_fee: float
    created_at: datetime
    reviewed_at: datetime | None = None
    review_notes: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ApplicationPage(CamelModel):
    """One page of the librarian list, newest first."""

    items: list[ApplicationStatusView]
    total: int
    limit: int
    offset: int


class ReviewRequest(CamelModel):
    status: str
    review_notes: str | None = None
    reviewed_by: str | None = None
