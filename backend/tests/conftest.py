"""
Disserto - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['UPLOAD_PATH'] = tempfile.mkdtemp(prefix='disserto-uploads-')

from app.main import app
from app.core.database import Base, get_db
from app.models.user import User, UserRole
from app.core.security import get_password_hash, create_access_token

fake = Faker()

DEPARTMENT = 'CSE'
PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(db: AsyncSession, role: UserRole, department: Optional[str] = DEPARTMENT,
                      **extra) -> User:
    """Insert a user directly, bypassing the API"""
    user = User(
        email=fake.unique.email(),
        hashed_password=get_password_hash(PASSWORD),
        full_name=fake.name(),
        role=role,
        department=department,
        branch=department,
        **extra
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    """Bearer headers for a user"""
    token = create_access_token({'sub': str(user.id), 'role': user.role.value})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def student(db_session: AsyncSession) -> User:
    return await create_user(db_session, UserRole.STUDENT, course='M.Tech')


@pytest.fixture
async def faculty(db_session: AsyncSession) -> User:
    return await create_user(db_session, UserRole.FACULTY)


@pytest.fixture
async def hod(db_session: AsyncSession) -> User:
    return await create_user(db_session, UserRole.HOD)


@pytest.fixture
async def other_hod(db_session: AsyncSession) -> User:
    """HOD of a different department"""
    return await create_user(db_session, UserRole.HOD, department='ECE')


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, UserRole.ADMIN, department=None)


@pytest.fixture
def student_headers(student: User) -> dict:
    return headers_for(student)


@pytest.fixture
def faculty_headers(faculty: User) -> dict:
    return headers_for(faculty)


@pytest.fixture
def hod_headers(hod: User) -> dict:
    return headers_for(hod)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return headers_for(admin_user)


def proposal_payload(**overrides) -> dict:
    """Proposal body in the camelCase the web client sends"""
    payload = {
        'title': fake.sentence(nb_words=5),
        'description': fake.text(max_nb_chars=200),
        'problemStatement': fake.text(max_nb_chars=120),
        'technologies': 'Python, FastAPI',
        'expectedOutcome': fake.text(max_nb_chars=80),
        'department': DEPARTMENT,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def submit_proposal(client: AsyncClient, student_headers: dict):
    """Returns a coroutine that posts a proposal as the student"""
    async def _submit(**overrides) -> dict:
        response = await client.post(
            '/api/v1/projects/proposal',
            json=proposal_payload(**overrides),
            headers=student_headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _submit


@pytest.fixture
async def approved_project(client: AsyncClient, hod: User, hod_headers: dict, faculty: User,
                           submit_proposal) -> dict:
    """A proposal approved by the department HOD with `faculty` as guide"""
    project = await submit_proposal()
    response = await client.patch(
        f"/api/v1/projects/{project['id']}/status",
        json={'status': 'approved', 'comments': 'Looks good', 'guide': faculty.id},
        headers=hod_headers
    )
    assert response.status_code == 200, response.text
    return response.json()
