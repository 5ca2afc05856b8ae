"""
Thinkify - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Callable
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from faker import Faker

# Set testing environment (before any thinkify import reads settings)
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_thinkify.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''

from thinkify.main import app
from thinkify.core.database import Base, get_db
from thinkify.core.roles import UserRole
from thinkify.core.security import get_password_hash
from thinkify.models import Assignment, Poll, PollOption, User

from helpers import TEST_PASSWORD, future, headers_for

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_thinkify.db'
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


async def _create_user(db_session: AsyncSession, role: UserRole, **overrides) -> User:
    fields = {
        'email': fake.unique.email(),
        'hashed_password': get_password_hash(TEST_PASSWORD),
        'full_name': fake.name(),
        'role': role,
    }
    if role == UserRole.STUDENT:
        fields['student_id'] = fake.unique.bothify('STU-#####')
    if role == UserRole.TEACHER:
        fields['teacher_id'] = fake.unique.bothify('TCH-#####')
        fields['department'] = fake.word().title()
    fields.update(overrides)
    user = User(**fields)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def student_user(db_session: AsyncSession) -> User:
    """Create a student"""
    return await _create_user(db_session, UserRole.STUDENT)


@pytest.fixture
async def other_student(db_session: AsyncSession) -> User:
    """A second student"""
    return await _create_user(db_session, UserRole.STUDENT)


@pytest.fixture
async def other_teacher(db_session: AsyncSession) -> User:
    """A second teacher"""
    return await _create_user(db_session, UserRole.TEACHER)


@pytest.fixture
async def teacher_user(db_session: AsyncSession) -> User:
    """Create a teacher"""
    return await _create_user(db_session, UserRole.TEACHER)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin"""
    return await _create_user(db_session, UserRole.ADMIN)


@pytest.fixture
def student_headers(student_user: User) -> dict:
    return headers_for(student_user)


@pytest.fixture
def teacher_headers(teacher_user: User) -> dict:
    return headers_for(teacher_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return headers_for(admin_user)


@pytest.fixture
def make_assignment(db_session: AsyncSession) -> Callable:
    """Factory persisting an assignment created by the given teacher"""
    async def _make(teacher: User, **overrides) -> Assignment:
        fields = {
            'title': fake.sentence(nb_words=4),
            'description': fake.paragraph(),
            'subject': 'Mathematics',
            'deadline': future(),
            'total_marks': 100,
            'created_by': str(teacher.id),
            'creator': teacher,
        }
        fields.update(overrides)
        assignment = Assignment(**fields)
        db_session.add(assignment)
        await db_session.commit()
        return assignment
    return _make


@pytest.fixture
def make_poll(db_session: AsyncSession) -> Callable:
    """Factory persisting a poll created by the given user"""
    async def _make(creator: User, options=('Yes', 'No'), **overrides) -> Poll:
        fields = {
            'title': fake.sentence(nb_words=4),
            'description': fake.paragraph(),
            'deadline': future(),
            'created_by': str(creator.id),
            'creator': creator,
            'options': [PollOption(text=text) for text in options],
        }
        fields.update(overrides)
        poll = Poll(**fields)
        db_session.add(poll)
        await db_session.commit()
        return poll
    return _make
