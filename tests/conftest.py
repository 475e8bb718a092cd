import os
import tempfile
import uuid

import pytest

_DB_FILE = os.path.join(tempfile.mkdtemp(prefix="dataroom-tests-"), "test.db")

os.environ["DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["ADMIN_EMAILS"] = "owner@example.com"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ.setdefault("PUBLIC_BASE_URL", "https://dataroom.test")
for _name in ("S3_ENDPOINT_URL", "S3_ACCESS_KEY", "S3_SECRET_KEY"):
    os.environ.pop(_name, None)

from fastapi.testclient import TestClient  # noqa: E402

from dataroom.db import Base, SessionLocal, engine as db_engine  # noqa: E402
from dataroom.models.dataroom import (  # noqa: E402
    Document,
    DocumentTier,
    UserProfile,
    UserRole,
)
from dataroom.services.identity import (  # noqa: E402
    CurrentUser,
    Identity,
    IdentityProvider,
)


@pytest.fixture(scope="session")
def engine():
    engine = db_engine
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def _clean_tables(engine):
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db_session(engine):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def published_events(monkeypatch):
    """Capture process_event.delay calls instead of talking to a broker."""
    from dataroom.tasks import events

    calls = []
    monkeypatch.setattr(
        events.process_event, "delay", lambda **kwargs: calls.append(kwargs)
    )
    return calls


def _make_user(db_session, email=None, role=UserRole.viewer.value) -> CurrentUser:
    profile = UserProfile(
        user_id=uuid.uuid4(),
        email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        role=role,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return CurrentUser(id=profile.user_id, email=profile.email, role=profile.role)


def _make_document(db_session, tier=DocumentTier.confidential, **kwargs) -> Document:
    suffix = uuid.uuid4().hex[:8]
    doc = Document(
        slug=kwargs.pop("slug", f"doc-{suffix}"),
        title=kwargs.pop("title", f"Document {suffix}"),
        tier=tier,
        content=kwargs.pop("content", "# Confidential\n\nNumbers."),
        **kwargs,
    )
    db_session.add(doc)
    db_session.commit()
    db_session.refresh(doc)
    return doc


@pytest.fixture()
def viewer(db_session):
    return _make_user(db_session, email="viewer@example.com")


@pytest.fixture()
def other_viewer(db_session):
    return _make_user(db_session, email="other@example.com")


@pytest.fixture()
def admin_user(db_session):
    """Administrator by stored role."""
    return _make_user(db_session, email="admin@example.com", role=UserRole.admin.value)


@pytest.fixture()
def owner(db_session):
    """Administrator by the ADMIN_EMAILS allow-list only."""
    return _make_user(db_session, email="owner@example.com")


@pytest.fixture()
def confidential_document(db_session):
    return _make_document(db_session, slug="financials", title="Financial Model")


@pytest.fixture()
def public_document(db_session):
    return _make_document(
        db_session,
        tier=DocumentTier.public,
        slug="overview",
        title="Company Overview",
        content="Public overview.",
    )


@pytest.fixture()
def tokens(monkeypatch):
    """Bearer token -> Identity, consulted instead of the identity provider."""
    issued: dict[str, Identity] = {}
    monkeypatch.setattr(
        IdentityProvider, "fetch_identity", staticmethod(lambda token: issued.get(token))
    )
    return issued


@pytest.fixture()
def auth_headers(tokens):
    def _headers(user: CurrentUser) -> dict:
        token = f"token-{user.id}"
        tokens[token] = Identity(id=user.id, email=user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def client(tokens):
    from dataroom.main import app

    with TestClient(app) as test_client:
        yield test_client
