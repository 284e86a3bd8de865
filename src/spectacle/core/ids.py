from __future__ import annotations

import re

from spectacle.core.types import RandomSource

# (low, high) inclusive bounds per segment; fixed digit widths 8-4-4-4-12
ANONYMOUS_ID_SEGMENTS: tuple[tuple[int, int], ...] = (
    (10_000_000, 99_999_999),
    (1_000, 9_999),
    (1_000, 9_999),
    (1_000, 9_999),
    (100_000_000_000, 999_999_999_999),
)

ANONYMOUS_ID_PATTERN = re.compile(r"^\d{8}-\d{4}-\d{4}-\d{4}-\d{12}$")


def generate_anonymous_id(rng: RandomSource) -> str:
    """
    UUID-shaped identifier made of random numeric segments.
    Same rng seed -> same id.
    """
    return "-".join(str(rng.randint(lo, hi)) for lo, hi in ANONYMOUS_ID_SEGMENTS)


def is_anonymous_id(value: str) -> bool:
    return bool(ANONYMOUS_ID_PATTERN.match(value))
