"""Pytest configuration and fixtures for the Davel Library tests.

Tests run against a throwaway SQLite database (aiosqlite) and never touch
SMTP, Redis or the network.
"""

import os
import tempfile

# Settings are read at import time, so point them at test values first
_TEST_DIR = tempfile.mkdtemp(prefix="davel-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["DATABASE_URL_SYNC"] = f"sqlite:///{_TEST_DIR}/app.db"
os.environ["DEBUG"] = "false"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["FOLLOWUP_NOTICE_DELAY_SECONDS"] = "0"

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base, get_db
from app.main import app
from app.schemas.membership import ApplicationDraft
from app.services.email import EmailService, get_email_service
from app.wizard.documents import DocumentSlots, FileHandle
from app.wizard.notifications import ToastLog
from app.wizard.persistence import MemoryDraftStore
from app.wizard.wizard import MembershipWizard


# ── Database ─────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


# ── Email ────────────────────────────────────────────────────────

class RecordingEmailService(EmailService):
    """Captures outgoing mail instead of talking to SMTP."""

    def __init__(self):
        super().__init__(user="test", password="test")
        self.sent: list[tuple[str, str]] = []

    async def send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        self.sent.append((to_email, subject))
        return True


@pytest.fixture
def mailer() -> RecordingEmailService:
    return RecordingEmailService()


# ── HTTP ─────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(test_engine, mailer) -> AsyncGenerator[AsyncClient, None]:
    """Client for the FastAPI app with the test database and mailer."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: mailer

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


def mock_client(handler) -> AsyncClient:
    """AsyncClient whose requests are answered by `handler(request)`."""
    return AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")


# ── Wizard data ──────────────────────────────────────────────────

VALID_FIELDS = {
    "first_name": "Jane",
    "last_name": "Doe",
    "date_of_birth": "1990-01-01",
    "gender": "female",
    "email": "jane.doe@example.com",
    "phone": "0821234567",
    "street": "12 Long Street",
    "city": "Cape Town",
    "state": "Western Cape",
    "zip_code": "8001",
    "country": "South Africa",
    "preferred_genres": ["Fiction", "History"],
    "reading_frequency": "weekly",
    "agree_to_terms": True,
}


@pytest.fixture
def valid_draft() -> ApplicationDraft:
    return ApplicationDraft(**VALID_FIELDS)


@pytest.fixture
def full_documents() -> DocumentSlots:
    docs = DocumentSlots()
    docs.attach("id_document", FileHandle("id.pdf", 1024, "application/pdf"))
    docs.attach("proof_of_address", FileHandle("bill.png", 2048, "image/png"))
    return docs


@pytest.fixture
def toasts() -> ToastLog:
    return ToastLog()


@pytest.fixture
def store() -> MemoryDraftStore:
    return MemoryDraftStore()


def valid_payload(**overrides) -> dict:
    """Wire payload as the wizard sends it."""
    payload = {
        "firstName": "Jane",
        "lastName": "Doe",
        "dateOfBirth": "1990-01-01",
        "gender": "female",
        "email": "jane.doe@example.com",
        "phone": "0821234567",
        "alternatePhone": "",
        "street": "12 Long Street",
        "city": "Cape Town",
        "state": "Western Cape",
        "zipCode": "8001",
        "country": "South Africa",
        "hasDisability": False,
        "disabilityDetails": "",
        "preferredGenres": ["Fiction", "History"],
        "readingFrequency": "weekly",
        "agreeToTerms": True,
        "subscribeNewsletter": True,
        "applicationFee": 42.5,
        "idDocument": "Documents uploaded",
        "proofOfAddress": "Documents uploaded",
        "additionalDocuments": None,
    }
    payload.update(overrides)
    return payload


async def fill_wizard(wizard: MembershipWizard) -> None:
    """Fill every field, attach required documents and walk to the review step."""
    wizard.update(**VALID_FIELDS)
    wizard.attach("id_document", FileHandle("id.pdf", 1024, "application/pdf"))
    wizard.attach("proof_of_address", FileHandle("bill.png", 2048, "image/png"))
    for _ in range(5):
        assert wizard.next_step().ok


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
    config.addinivalue_line("markers", "wizard: Wizard flow tests")
