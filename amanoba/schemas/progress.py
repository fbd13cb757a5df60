"""코스 진행, 일차 레슨, 레슨 퀴즈 관련 Pydantic 스키마 정의.

Course progress, day lesson and lesson quiz Pydantic schema definitions.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from amanoba.schemas.course import CourseResponse, LessonResponse


# === 진행 (Progress) 스키마 ===

class ProgressResponse(BaseModel):
    """코스 진행 응답 스키마.

    Course progress response schema.

    Attributes:
        course_id: 코스 코드 (Course code)
        current_day: 현재 일차 — 첫 미완료 일차 (First uncompleted day)
        completed_days: 완료된 일차 목록 (Completed day numbers, sorted)
        progress_percent: 진행률 (Completed days over duration, 0..100)
    """

    course_id: str
    current_day: int
    completed_days: list[int]
    passed_quiz_days: list[int] = []  # 퀴즈 통과 일차 (Days with a passing quiz result)
    status: str  # not_started | in_progress | completed | abandoned
    total_points_earned: int
    total_xp_earned: int
    progress_percent: int
    started_at: datetime
    completed_at: datetime | None = None
    last_accessed_at: datetime


class EnrollResponse(BaseModel):
    success: bool = True
    already_enrolled: bool = False  # 이미 수강 중이면 True (True when the player was already enrolled)
    progress: ProgressResponse


class MyCourseItem(BaseModel):
    course: CourseResponse
    progress: ProgressResponse


class MyCoursesResponse(BaseModel):
    success: bool = True
    courses: list[MyCourseItem]


# === 일차 레슨 (Day lesson) 스키마 ===

class LessonNav(BaseModel):
    """이전/다음 레슨 내비게이션 (Previous/next lesson navigation entry)."""

    day_number: int
    title: str


class QuizSummary(BaseModel):
    """레슨 퀴즈 요약 — 유효 정책 적용 후 (Effective quiz settings for the lesson)."""

    enabled: bool
    required: bool
    passed: bool
    question_count: int
    success_threshold: int


class DayLessonResponse(BaseModel):
    """일차 레슨 응답 스키마.

    Day lesson response with completion state, quiz summary and navigation.
    """

    success: bool = True
    lesson: LessonResponse
    day: int
    total_days: int
    current_day: int
    is_completed: bool
    quiz: QuizSummary
    previous_lesson: LessonNav | None = None
    next_lesson: LessonNav | None = None


class CompleteDayResponse(BaseModel):
    """일차 완료 응답 스키마.

    Day completion result. already_completed responses award nothing.
    """

    success: bool = True
    already_completed: bool = False
    points_awarded: int = 0
    xp_awarded: int = 0
    course_completed: bool = False
    unlocked_achievements: list[str] = []  # 새로 달성한 업적 키 (Newly unlocked achievement keys)
    progress: ProgressResponse


# === 레슨 퀴즈 (Lesson quiz) 스키마 ===

class QuizQuestionPublic(BaseModel):
    """정답이 제외된 문항 (Question without its correct answer)."""

    question_id: str
    question: str
    options: list[str]


class LessonQuizResponse(BaseModel):
    success: bool = True
    day: int
    lesson_id: str
    success_threshold: int
    questions: list[QuizQuestionPublic]


class QuizAnswer(BaseModel):
    question_id: str  # 문항 UUID (Question UUID)
    selected_index: int = Field(..., ge=0)  # 선택한 보기 인덱스 (Selected option index)


class QuizSubmitRequest(BaseModel):
    """레슨 퀴즈 제출 요청 (Lesson quiz submission)."""

    answers: list[QuizAnswer] = Field(..., min_length=1)


class QuizSubmitResponse(BaseModel):
    """레슨 퀴즈 채점 응답 (Lesson quiz grading result)."""

    success: bool = True
    result_id: str
    correct_count: int
    total_questions: int
    score_percent: float
    success_threshold: int
    passed: bool
