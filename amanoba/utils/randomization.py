"""시험 무작위화 유틸리티 — 문항 샘플링, 보기 순서 섞기, 점수 반올림.

Exam randomization helpers.
Question sampling, per-question option permutations, half-up percentage
rounding, and stable weighted bucketing for certificate template variants.
"""

import hashlib
import math
import random
from typing import Sequence, TypeVar

T = TypeVar("T")

_system_random: random.Random = random.SystemRandom()


def sample_without_replacement(
    items: Sequence[T], count: int, rng: random.Random | None = None
) -> list[T]:
    """중복 없이 count개를 무작위로 뽑습니다.

    Randomly pick ``count`` distinct items. When the pool is smaller than
    ``count`` every item is returned in shuffled order.
    """
    rng = rng or _system_random
    count = min(count, len(items))
    return rng.sample(list(items), count)


def option_permutation(option_count: int, rng: random.Random | None = None) -> list[int]:
    """보기 순서 순열을 생성합니다.

    Build a permutation of option indices. Position ``i`` of the result is the
    stored option index displayed at position ``i``.
    """
    rng = rng or _system_random
    order: list[int] = list(range(option_count))
    rng.shuffle(order)
    return order


def round_half_up(value: float) -> int:
    """0.5를 올림하는 정수 반올림 (Round to nearest int, halves away from zero for positives)."""
    return int(math.floor(value + 0.5))


def stable_weighted_choice(
    seed: str, choices: Sequence[str], weights: Sequence[float] | None = None
) -> str | None:
    """시드 문자열 기반의 결정적 가중치 선택.

    Deterministically choose one of ``choices`` from the SHA-256 of ``seed``.
    The same seed always maps to the same choice. Missing or mismatched
    weights fall back to uniform weighting; non-positive weights are skipped.

    Returns:
        str | None: 선택된 항목 또는 None (Chosen item, None when choices is empty)
    """
    if not choices:
        return None
    if weights is None or len(weights) != len(choices):
        weights = [1.0] * len(choices)

    total: float = sum(w for w in weights if w > 0)
    if total <= 0:
        return choices[0]

    digest: int = int(hashlib.sha256(seed.encode("utf-8")).hexdigest()[:12], 16)
    point: float = (digest / float(16 ** 12)) * total

    cumulative: float = 0.0
    for choice, weight in zip(choices, weights):
        if weight <= 0:
            continue
        cumulative += weight
        if point < cumulative:
            return choice
    return choices[-1]
