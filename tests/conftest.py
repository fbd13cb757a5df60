"""테스트 인프라 — 임시 DB, 세션, httpx 클라이언트, 데이터 팩토리 픽스처.

Test infrastructure — Temporary database, session, httpx client and data
factory fixtures. Uses in-memory SQLite (aiosqlite) by default; set
TEST_DATABASE_URL to run against another database. The schema is created
fresh for every test.
"""

import os

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from amanoba.database import Base, get_db  # noqa: E402
from amanoba.main import app  # noqa: E402
from amanoba.models import *  # noqa: F401,F403,E402 — register all models with metadata
from amanoba.models.course import Course, Lesson, default_certification_config, default_quiz_config  # noqa: E402
from amanoba.models.player import ROLE_ADMIN, ROLE_EDITOR, ROLE_USER, Player, PlayerProgression  # noqa: E402
from amanoba.models.points import PointsWallet  # noqa: E402
from amanoba.models.question import QuizQuestion  # noqa: E402
from amanoba.utils.jwt import create_access_token  # noqa: E402
from amanoba.utils.password import hash_password  # noqa: E402


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 매 테스트마다 스키마를 새로 생성합니다."""
    options = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}} \
        if TEST_DATABASE_URL.startswith("sqlite") else {}
    eng = create_async_engine(TEST_DATABASE_URL, echo=False, **options)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼: 인증 헤더 및 데이터 팩토리
# ---------------------------------------------------------------------------
def auth_header(player: Player) -> dict[str, str]:
    """플레이어의 액세스 토큰으로 Authorization 헤더를 만듭니다."""
    token = create_access_token({"sub": str(player.id), "role": player.role})
    return {"Authorization": f"Bearer {token}"}


async def make_player(
    db: AsyncSession,
    email: str,
    role: str = ROLE_USER,
    display_name: str = "Test Player",
    password: str = "password123!",
    balance: int = 0,
    **fields,
) -> Player:
    """지갑과 성장 레코드를 가진 플레이어를 생성합니다."""
    player = Player(
        display_name=display_name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        **fields,
    )
    db.add(player)
    await db.flush()
    db.add(PointsWallet(player_id=player.id, current_balance=balance, lifetime_earned=balance))
    db.add(PlayerProgression(player_id=player.id))
    await db.flush()
    await db.refresh(player)
    return player


async def make_course(
    db: AsyncSession,
    course_id: str = "TEST_COURSE",
    duration_days: int = 3,
    certification: dict | None = None,
    **fields,
) -> Course:
    """코스를 생성합니다. certification은 기본 설정에 병합됩니다."""
    course = Course(
        course_id=course_id,
        name=fields.pop("name", f"Course {course_id}"),
        description="Test course",
        language=fields.pop("language", "en"),
        duration_days=duration_days,
        certification={**default_certification_config(), **(certification or {})},
        **fields,
    )
    db.add(course)
    await db.flush()
    await db.refresh(course)
    return course


async def make_lesson(
    db: AsyncSession,
    course: Course,
    day: int,
    quiz: dict | None = None,
    **fields,
) -> Lesson:
    """일차 레슨을 생성합니다. quiz는 레슨 퀴즈 설정에 병합됩니다."""
    lesson = Lesson(
        lesson_id=f"{course.course_id}_DAY_{day:02d}",
        course_id=course.id,
        day_number=day,
        language="en",
        title=fields.pop("title", f"Day {day}"),
        content=f"Content of day {day}",
        quiz_config={**default_quiz_config(), **(quiz or {})},
        **fields,
    )
    db.add(lesson)
    await db.flush()
    await db.refresh(lesson)
    return lesson


async def make_question(
    db: AsyncSession,
    course: Course | None = None,
    lesson: Lesson | None = None,
    correct_index: int = 0,
    course_specific: bool = True,
    text: str = "Which option is the right one?",
) -> QuizQuestion:
    """4지선다 문항을 생성합니다."""
    question = QuizQuestion(
        question=text,
        options=["Alpha", "Bravo", "Charlie", "Delta"],
        correct_index=correct_index,
        lesson_id=lesson.lesson_id if lesson else None,
        course_id=course.id if course else None,
        is_course_specific=course_specific,
    )
    db.add(question)
    await db.flush()
    await db.refresh(question)
    return question


@pytest_asyncio.fixture
async def player(db: AsyncSession) -> Player:
    """일반 플레이어를 생성합니다."""
    return await make_player(db, "player@test.com", display_name="Learner")


@pytest_asyncio.fixture
async def admin(db: AsyncSession) -> Player:
    """관리자를 생성합니다."""
    return await make_player(db, "admin@test.com", role=ROLE_ADMIN, display_name="Admin")


@pytest_asyncio.fixture
async def editor(db: AsyncSession) -> Player:
    """에디터를 생성합니다."""
    return await make_player(db, "editor@test.com", role=ROLE_EDITOR, display_name="Editor")


@pytest_asyncio.fixture
async def course(db: AsyncSession) -> Course:
    """퀴즈 없는 3일 코스와 레슨을 생성합니다."""
    c = await make_course(db)
    for day in range(1, 4):
        await make_lesson(db, c, day)
    return c
