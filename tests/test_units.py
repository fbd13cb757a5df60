"""순수 함수 단위 테스트 — 레벨 곡선, 일차 계산, 퀴즈 정책, 무작위화, 토큰.

Unit tests for pure helpers: level curve, current-day calculation, quiz
policy merge, exam randomization and tokens.
"""

import random
from datetime import datetime, timezone

import jwt
import pytest

from amanoba.middleware.axiom_logging import _mask_dict
from amanoba.models.course import Course, Lesson, default_quiz_config
from amanoba.services.course_service import calculate_current_day, effective_quiz_config
from amanoba.services.leaderboard_service import period_start
from amanoba.services.progression_service import title_for_level, xp_to_next_level
from amanoba.services.streak_service import milestone_crossed
from amanoba.utils.jwt import create_access_token, create_refresh_token, decode_token
from amanoba.utils.password import hash_password, verify_password
from amanoba.utils.randomization import (
    option_permutation,
    round_half_up,
    sample_without_replacement,
    stable_weighted_choice,
)


class TestLevelCurve:
    """레벨 곡선 테스트."""

    @pytest.mark.parametrize("level, expected", [(1, 110), (2, 240), (3, 390), (10, 2000)])
    def test_xp_to_next_level(self, level, expected):
        """floor(level * 100 * (1 + level * 0.1))."""
        assert xp_to_next_level(level) == expected

    def test_titles(self):
        """도달한 최고 칭호."""
        assert title_for_level(4) is None
        assert title_for_level(5) == "Novice"
        assert title_for_level(14) == "Adept"
        assert title_for_level(100) == "Immortal"


class TestCurrentDay:
    """현재 일차 계산 테스트."""

    def test_first_gap(self):
        """첫 번째 미완료 일차."""
        assert calculate_current_day([], 5) == 1
        assert calculate_current_day([1, 2, 4], 5) == 3

    def test_all_done(self):
        """모두 완료하면 total + 1."""
        assert calculate_current_day([3, 1, 2], 3) == 4


class TestEffectiveQuizConfig:
    """코스 정책 병합 테스트."""

    def _lesson(self, **quiz) -> Lesson:
        return Lesson(quiz_config={**default_quiz_config(), "enabled": True, **quiz})

    def test_lesson_settings_without_policy(self):
        """정책이 없으면 레슨 설정 그대로."""
        config = effective_quiz_config(Course(lesson_quiz_policy={}), self._lesson(question_count=3))
        assert config == {"enabled": True, "required": True, "question_count": 3, "success_threshold": 70}

    def test_policy_disables(self):
        """정책 비활성은 퀴즈와 필수 여부를 모두 끔."""
        config = effective_quiz_config(Course(lesson_quiz_policy={"enabled": False}), self._lesson())
        assert config["enabled"] is False
        assert config["required"] is False

    def test_policy_overrides(self):
        """정책의 문항 수와 기준이 레슨 설정을 덮어씀."""
        course = Course(lesson_quiz_policy={"required": False, "question_count": 8, "success_threshold": 0})
        config = effective_quiz_config(course, self._lesson())
        assert config == {"enabled": True, "required": False, "question_count": 8, "success_threshold": 0}


class TestRandomization:
    """시험 무작위화 테스트."""

    def test_sample_distinct(self):
        """중복 없는 샘플링."""
        picked = sample_without_replacement(list(range(20)), 5, rng=random.Random(7))
        assert len(picked) == 5
        assert len(set(picked)) == 5

    def test_sample_small_pool(self):
        """풀이 작으면 전부 반환."""
        assert sorted(sample_without_replacement([1, 2, 3], 10)) == [1, 2, 3]

    def test_option_permutation(self):
        """보기 순열은 0..n-1의 순열."""
        assert sorted(option_permutation(4, rng=random.Random(1))) == [0, 1, 2, 3]

    @pytest.mark.parametrize("value, expected", [(62.5, 63), (62.49, 62), (0.0, 0), (100.0, 100), (33.333, 33)])
    def test_round_half_up(self, value, expected):
        """0.5는 올림."""
        assert round_half_up(value) == expected

    def test_stable_choice_is_deterministic(self):
        """같은 시드는 같은 변형."""
        choices = ["a", "b", "c"]
        first = stable_weighted_choice("player:COURSE", choices)
        assert all(stable_weighted_choice("player:COURSE", choices) == first for _ in range(10))
        assert first in choices

    def test_stable_choice_weights(self):
        """가중치 0인 변형은 선택되지 않음."""
        for n in range(50):
            assert stable_weighted_choice(f"seed-{n}", ["never", "always"], [0, 1]) == "always"

    def test_stable_choice_edges(self):
        """빈 목록은 None, 가중치 합이 0이면 첫 항목."""
        assert stable_weighted_choice("x", []) is None
        assert stable_weighted_choice("x", ["a", "b"], [0, 0]) == "a"


class TestSecurityHelpers:
    """비밀번호 해시와 JWT 테스트."""

    def test_password_roundtrip(self):
        """해시 검증."""
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)

    def test_token_types(self):
        """액세스/리프레시 토큰 타입 구분."""
        assert decode_token(create_access_token({"sub": "abc"}))["type"] == "access"
        assert decode_token(create_refresh_token({"sub": "abc"}))["type"] == "refresh"

    def test_tampered_token(self):
        """변조된 토큰은 거부."""
        token = create_access_token({"sub": "abc"})
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token + "x")


class TestStreakMilestones:
    """로그인 연속 기록 마일스톤 테스트."""

    @pytest.mark.parametrize("current, previous, expected", [(3, 2, 3), (2, 1, None), (7, 6, 7), (4, 3, None), (100, 99, 100)])
    def test_milestone_crossed(self, current, previous, expected):
        """이번 증가로 넘은 마일스톤만 반환."""
        assert milestone_crossed(current, previous) == expected


class TestLeaderboardPeriods:
    """리더보드 기간 시작 시각 테스트."""

    def test_period_starts(self):
        """일/주(일요일)/월 시작, 전체 기간은 None."""
        now = datetime(2026, 10, 21, 15, 30, tzinfo=timezone.utc)
        assert period_start("all_time", now) is None
        assert period_start("daily", now) == datetime(2026, 10, 21, tzinfo=timezone.utc)
        assert period_start("monthly", now) == datetime(2026, 10, 1, tzinfo=timezone.utc)
        weekly = period_start("weekly", now)
        assert weekly.weekday() == 6
        assert 0 <= (now - weekly).days < 7
        assert (weekly.hour, weekly.minute) == (0, 0)


class TestLogMasking:
    """요청 로그 마스킹 테스트."""

    def test_sensitive_keys_masked(self):
        """비밀번호, 토큰, 자격 증명은 마스킹, credential_title_id는 유지."""
        masked = _mask_dict({
            "password": "secret!",
            "refresh_token": "abc",
            "credentials": "xyz",
            "credential_title_id": "CERT",
            "nested": {"access_token": "t", "name": "n"},
        })
        assert masked["password"] == "***"
        assert masked["refresh_token"] == "***"
        assert masked["credentials"] == "***"
        assert masked["credential_title_id"] == "CERT"
        assert masked["nested"] == {"access_token": "***", "name": "n"}
