"""
Shared test fixtures for CertifyHub.

Each test gets its own SQLite database file; the application's session and
asset storage dependencies are overridden to point at it.
"""
import os

os.environ["SECRET_KEY"] = "test-secret-key-with-at-least-32-characters!"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./certifyhub_test.db"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import date, timedelta  # noqa: E402
from typing import AsyncGenerator, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.core.security import get_password_hash  # noqa: E402
from app.domain.schemas.auth import Principal  # noqa: E402
from app.infrastructure.database.base import Base, get_db  # noqa: E402
from app.infrastructure.database.models import Certificate, User  # noqa: E402
from app.main import app  # noqa: E402
from app.services.auth.authorization.rbac import UserRole, Visibility  # noqa: E402
from app.services.auth.token_service import TokenService  # noqa: E402
from app.services.storage.asset_storage import (  # noqa: E402
    CERTIFICATES_NAMESPACE,
    AssetStorage,
    get_asset_storage,
)

DEFAULT_PASSWORD = "correct-horse-battery"


class InMemoryAssetStorage(AssetStorage):
    """Asset storage keeping uploads in a dict."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}

    async def upload(
        self,
        data: bytes,
        filename: str,
        namespace: str = CERTIFICATES_NAMESPACE,
        content_type: Optional[str] = None,
    ) -> str:
        key = f"{namespace}/{len(self.objects)}-{filename}"
        self.objects[key] = data
        return f"memory://{key}"


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'certifyhub.db'}",
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> InMemoryAssetStorage:
    return InMemoryAssetStorage()


@pytest_asyncio.fixture
async def client(session_factory, storage) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with test dependencies."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_asset_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService()


@pytest.fixture
def user_factory(session_factory):
    """Create users directly in the database."""
    counter = {"n": 0}

    async def create(
        role: UserRole = UserRole.USER,
        unit: Optional[str] = "Engineering",
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        **fields,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        async with session_factory() as session:
            user = User(
                email=email or f"user{n}@example.com",
                password_hash=get_password_hash(password),
                name=name or f"User {n}",
                unit=unit,
                role=role,
                **fields,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return create


@pytest.fixture
def certificate_factory(session_factory):
    """Create certificates directly in the database."""

    async def create(
        owner: User,
        visibility: Visibility = Visibility.PUBLIC,
        title: str = "AWS Solutions Architect",
        category: str = "Cloud",
        issuer: str = "Amazon",
        completion_date: Optional[date] = None,
        tags: Optional[List[str]] = None,
        **fields,
    ) -> Certificate:
        async with session_factory() as session:
            certificate = Certificate(
                owner_id=owner.id,
                unit=owner.unit,
                title=title,
                category=category,
                issuer=issuer,
                completion_date=completion_date or date.today() - timedelta(days=30),
                tags=tags or [],
                visibility=visibility,
                **fields,
            )
            session.add(certificate)
            await session.commit()
            await session.refresh(certificate)
            return certificate

    return create


@pytest.fixture
def principal_of():
    """Principal as it would be resolved from the user's token."""

    def build(user: User) -> Principal:
        return Principal(
            id=user.id,
            email=user.email,
            role=user.role,
            unit=user.unit,
            token_version=user.token_version,
        )

    return build


@pytest.fixture
def auth_headers(token_service):
    """Build bearer headers for a stored user."""

    def build(user: User) -> Dict[str, str]:
        token = token_service.issue(user).access_token
        return {"Authorization": f"Bearer {token}"}

    return build
