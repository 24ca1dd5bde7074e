# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-veltis")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from veltis.core.security import build_sign_message  # noqa: E402
from veltis.core.settings import settings  # noqa: E402
from veltis.db.session import Base  # noqa: E402
from veltis.db.session import get_db as app_get_session  # noqa: E402
from veltis.main import app as fastapi_app  # noqa: E402
from veltis.models import User  # noqa: E402
from veltis.services.session import create_access_token  # noqa: E402

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep durable-store retries from sleeping during tests."""
    monkeypatch.setattr(settings, "store_retry_base_delay_seconds", 0.0)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def wallet() -> LocalAccount:
    """Return a freshly generated Ethereum account."""
    return Account.create()


@pytest.fixture()
def other_wallet() -> LocalAccount:
    return Account.create()


def sign_text(account: LocalAccount, text: str) -> str:
    """Return a 0x-prefixed personal_sign signature over `text`."""
    signed = Account.sign_message(encode_defunct(text=text), private_key=account.key)
    return "0x" + bytes(signed.signature).hex()


@pytest.fixture()
def sign_challenge() -> Callable[[LocalAccount, str, str | None], str]:
    """Sign the canonical challenge text for a nonce.

    The message embeds `address` when given, otherwise the account's
    checksummed address.
    """

    def _sign(account: LocalAccount, nonce: str, address: str | None = None) -> str:
        message = build_sign_message(settings.platform_name, address or account.address, nonce)
        return sign_text(account, message)

    return _sign


@pytest.fixture()
def test_user(db_session: Session, wallet: LocalAccount) -> Iterator[User]:
    """Create and return a persisted user for the test wallet."""
    user = User(wallet_address=wallet.address.lower(), name="Test User")
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    yield user


@pytest.fixture()
def auth_headers(test_user: User) -> dict[str, str]:
    """Return authorization headers for the test user."""
    token = create_access_token(test_user.id, test_user.wallet_address)
    return {"Authorization": f"Bearer {token}"}
