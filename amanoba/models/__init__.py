"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    player: 플레이어 및 성장 (Player, PlayerProgression)
    points: 포인트 지갑 및 거래 (PointsWallet, PointsTransaction)
    course: 코스 및 레슨 (Course, Lesson)
    question: 퀴즈 문항 (QuizQuestion)
    progress: 코스 진행 및 레슨 퀴즈 결과 (CourseProgress, AssessmentResult)
    achievement: 업적 (Achievement, AchievementUnlock)
    certification: 인증 권한, 최종 시험, 인증서, 설정 (Entitlements, attempts, certificates, settings)
    streak: 일일 로그인 연속 기록 (Streak)
"""

from amanoba.models.player import Player, PlayerProgression
from amanoba.models.points import PointsWallet, PointsTransaction
from amanoba.models.course import Course, Lesson
from amanoba.models.question import QuizQuestion
from amanoba.models.progress import CourseProgress, AssessmentResult
from amanoba.models.achievement import Achievement, AchievementUnlock
from amanoba.models.certification import CertificateEntitlement, FinalExamAttempt, Certificate, CertificationSettings
from amanoba.models.streak import Streak

__all__ = [
    "Player", "PlayerProgression",
    "PointsWallet", "PointsTransaction",
    "Course", "Lesson",
    "QuizQuestion",
    "CourseProgress", "AssessmentResult",
    "Achievement", "AchievementUnlock",
    "CertificateEntitlement", "FinalExamAttempt", "Certificate", "CertificationSettings",
    "Streak",
]
