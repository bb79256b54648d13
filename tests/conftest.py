"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.audit.models import AuditLog, ConsultancyAuditLog  # noqa: F401
from app.core.auth.backend import create_access_token
from app.core.database import Base, get_db
from app.core.database.session import get_session_factory
from app.core.permissions.roles import AccessLevel, MemberRole
from app.main import create_app

# Import all models to ensure they're registered with Base.metadata
from app.modules.assignments.models import Assignment  # noqa: F401
from app.modules.matrices.models import Matrix, TaskGroup  # noqa: F401
from app.modules.organizations.models import ConsultancyAccess, Member, Organization
from app.modules.projects.models import Project
from app.modules.tasks.models import Task, TaskGroupMembership  # noqa: F401
from app.modules.users.models import User
from tests.factories.organization import MemberFactory, OrganizationFactory
from tests.factories.user import UserFactory


# In-memory SQLite; StaticPool keeps one connection so every session sees the same DB
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Create a fresh test database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests.

    Services commit their own transactions, so isolation comes from the
    per-test engine rather than an outer rollback.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
async def app(db: AsyncSession, session_factory):
    """Create test application instance."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_factory] = lambda: session_factory

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def auth_for() -> Callable[[User], dict[str, str]]:
    """Build bearer headers for any user."""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user_id=user.id, email=user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


# ============================================================
# Organization Fixtures
# ============================================================


@pytest.fixture
async def user(db: AsyncSession) -> User:
    """Create the test user who owns the test organization."""
    user = UserFactory.build()
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def organization(db: AsyncSession) -> Organization:
    """Create a test organization."""
    organization = OrganizationFactory.build()
    db.add(organization)
    await db.commit()
    return organization


@pytest.fixture
async def owner(db: AsyncSession, user: User, organization: Organization) -> Member:
    """Make the test user the organization's OWNER."""
    member = MemberFactory.build(
        user_id=user.id,
        organization_id=organization.id,
        role=MemberRole.OWNER,
        job_title="Founder",
    )
    db.add(member)
    await db.commit()
    return member


@pytest.fixture
async def project(db: AsyncSession, organization: Organization, owner: Member) -> Project:
    """Create a project owned by the test owner."""
    project = Project(organization_id=organization.id, name="Website Relaunch", owner_id=owner.id)
    db.add(project)
    await db.commit()
    return project


@pytest.fixture
async def matrix(db: AsyncSession, project: Project) -> Matrix:
    """Create an empty matrix in the test project."""
    matrix = Matrix(project_id=project.id, name="Launch Plan", version=1)
    db.add(matrix)
    await db.commit()
    return matrix


@pytest.fixture
async def consultant(db: AsyncSession) -> User:
    """Create a consultancy super-user with ADMIN access to every organization."""
    consultant = UserFactory.build(name="Consultant")
    db.add(consultant)
    await db.flush()
    db.add(
        ConsultancyAccess(
            user_id=consultant.id,
            can_access_all_orgs=True,
            access_level=AccessLevel.ADMIN,
        )
    )
    await db.commit()
    return consultant


@pytest.fixture
def auth_headers(user: User, owner: Member, auth_for) -> dict[str, str]:
    """Bearer headers for the organization owner."""
    return auth_for(user)


@pytest.fixture
async def authenticated_client(
    app, auth_headers: dict[str, str]
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client authenticated as the organization owner."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=auth_headers,
    ) as client:
        yield client
