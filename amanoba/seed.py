"""초기 데이터 시드 스크립트 — 관리자 계정, 샘플 코스, 기본 업적 생성.

Seed script — Creates the bootstrap admin, a sample course with lessons and
quiz questions, and the default achievement set.

Usage:
    python -m amanoba.seed

Creates:
    - 1개 관리자 계정: SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD (1 admin player)
    - 1개 샘플 코스: DEMO_COURSE, 3일 레슨과 문항 (Sample 3-day course with questions)
    - 기본 업적 (Default achievements)
"""

import asyncio

from sqlalchemy import select

from amanoba.config import settings
from amanoba.database import Base, async_session, engine
from amanoba.models import Achievement, Course, Lesson, Player, QuizQuestion
from amanoba.models.achievement import (
    CRITERIA_CERTIFICATES_EARNED,
    CRITERIA_COURSES_COMPLETED,
    CRITERIA_LESSONS_COMPLETED,
    CRITERIA_LEVEL_REACHED,
    CRITERIA_PERFECT_FINAL_EXAM,
)
from amanoba.models.course import default_certification_config, default_quiz_config
from amanoba.models.player import ROLE_ADMIN
from amanoba.services.points_service import points_service
from amanoba.services.progression_service import progression_service
from amanoba.utils.log import configure_logging, get_logger
from amanoba.utils.password import hash_password

logger = get_logger(__name__)

DEMO_COURSE_ID: str = "DEMO_COURSE"

# (key, name, criteria_type, target, points, xp)
_ACHIEVEMENTS: list[tuple[str, str, str, int, int, int]] = [
    ("first_lesson", "First Steps", CRITERIA_LESSONS_COMPLETED, 1, 10, 20),
    ("ten_lessons", "Dedicated Learner", CRITERIA_LESSONS_COMPLETED, 10, 50, 100),
    ("first_course", "Course Finisher", CRITERIA_COURSES_COMPLETED, 1, 100, 200),
    ("level_5", "Rising Star", CRITERIA_LEVEL_REACHED, 5, 50, 0),
    ("first_certificate", "Certified", CRITERIA_CERTIFICATES_EARNED, 1, 150, 300),
    ("perfect_exam", "Flawless", CRITERIA_PERFECT_FINAL_EXAM, 1, 200, 400),
]

# (day, title, [(question, options, correct_index)])
_DEMO_LESSONS: list[tuple[int, str, list[tuple[str, list[str], int]]]] = [
    (1, "Why habits matter", [
        ("What is a habit?", ["A random act", "A repeated behaviour", "A goal", "A reward"], 1),
        ("How long does a habit take to form on average?", ["1 day", "1 week", "About 2 months", "10 years"], 2),
    ]),
    (2, "Planning your day", [
        ("When is planning most useful?", ["After the day", "Before the day starts", "Never", "At midnight"], 1),
        ("Which item belongs on a daily plan?", ["Everything", "Top priorities", "Old emails", "Nothing"], 1),
    ]),
    (3, "Reviewing progress", [
        ("Why review weekly?", ["To adjust course", "To feel bad", "No reason", "To skip work"], 0),
        ("What should a review produce?", ["Excuses", "Next actions", "More meetings", "Nothing"], 1),
    ]),
]


async def _seed_admin(db) -> Player:
    result = await db.execute(select(Player).where(Player.email == settings.SEED_ADMIN_EMAIL))
    admin: Player | None = result.scalar_one_or_none()
    if admin is not None:
        return admin

    admin = Player(
        display_name="Admin",
        email=settings.SEED_ADMIN_EMAIL,
        password_hash=hash_password(settings.SEED_ADMIN_PASSWORD),
        role=ROLE_ADMIN,
    )
    db.add(admin)
    await db.flush()  # flush로 admin.id 생성 (Flush to generate admin.id)
    await points_service.get_or_create_wallet(db, admin.id)
    await progression_service.get_or_create(db, admin.id)
    logger.info("seed_admin_created", email=admin.email)
    return admin


async def _seed_demo_course(db, admin: Player) -> None:
    result = await db.execute(select(Course).where(Course.course_id == DEMO_COURSE_ID))
    if result.scalar_one_or_none() is not None:
        return

    certification = default_certification_config()
    certification.update({"enabled": True, "cert_question_count": 4, "price_points": 100})
    course: Course = Course(
        course_id=DEMO_COURSE_ID,
        name="Productive Habits in 3 Days",
        description="A short demo course covering habits, planning and review.",
        language="en",
        duration_days=len(_DEMO_LESSONS),
        certification=certification,
        created_by=admin.id,
    )
    db.add(course)
    await db.flush()

    for day, title, questions in _DEMO_LESSONS:
        lesson_code: str = f"{DEMO_COURSE_ID}_DAY_{day:02d}"
        quiz_config = default_quiz_config()
        quiz_config.update({"enabled": True, "question_count": len(questions), "pool_size": len(questions)})
        db.add(Lesson(
            lesson_id=lesson_code,
            course_id=course.id,
            day_number=day,
            language="en",
            title=title,
            content=f"<p>{title}</p>",
            quiz_config=quiz_config,
        ))
        for text, options, correct_index in questions:
            db.add(QuizQuestion(
                question=text,
                options=options,
                correct_index=correct_index,
                category="Productivity",
                lesson_id=lesson_code,
                course_id=course.id,
                is_course_specific=True,
                created_by=admin.id,
            ))
    await db.flush()
    logger.info("seed_course_created", course_id=DEMO_COURSE_ID)


async def _seed_achievements(db) -> None:
    existing = set((await db.execute(select(Achievement.key))).scalars().all())
    for key, name, criteria_type, target, points, xp in _ACHIEVEMENTS:
        if key in existing:
            continue
        db.add(Achievement(
            key=key,
            name=name,
            criteria_type=criteria_type,
            criteria_target=target,
            points_reward=points,
            xp_reward=xp,
        ))


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with initial data. Creates tables if they don't exist.

    Idempotent: 이미 존재하는 항목은 건너뜁니다 (Existing rows are skipped).
    """
    # 테이블 생성 — DDL 실행 (Create all tables from ORM metadata)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        admin: Player = await _seed_admin(db)
        await _seed_demo_course(db, admin)
        await _seed_achievements(db)
        await db.commit()
    print(f"Seeded: admin={settings.SEED_ADMIN_EMAIL}, course={DEMO_COURSE_ID}")


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed())
