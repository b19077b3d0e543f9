"""
Seeded pseudo-random helpers for reproducible case generation.

The string hash is xmur3 and the generator is sfc32 (small fast counter),
both in 32-bit unsigned arithmetic so a seed yields the same stream of
floats in [0, 1) on every platform.
"""

import math
from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")

Rng = Callable[[], float]

MASK32 = 0xFFFFFFFF
BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


def _code_units(text: str) -> list[int]:
    """UTF-16 code units, so astral characters hash as surrogate pairs."""
    raw = text.encode("utf-16-le", "surrogatepass")
    return [raw[i] | (raw[i + 1] << 8) for i in range(0, len(raw), 2)]


def xmur3(text: str) -> Callable[[], int]:
    """Return a hash function producing successive 32-bit seeds for ``text``."""
    units = _code_units(text)
    h = (1779033703 ^ len(units)) & MASK32
    for unit in units:
        h = _imul(h ^ unit, 3432918353)
        h = ((h << 13) | (h >> 19)) & MASK32

    def next_seed() -> int:
        nonlocal h
        h = _imul(h ^ (h >> 16), 2246822507)
        h = _imul(h ^ (h >> 13), 3266489909)
        h = (h ^ (h >> 16)) & MASK32
        return h

    return next_seed


def sfc32(a: int, b: int, c: int, d: int) -> Rng:
    a, b, c, d = a & MASK32, b & MASK32, c & MASK32, d & MASK32

    def next_float() -> float:
        nonlocal a, b, c, d
        t = (a + b) & MASK32
        a = b ^ (b >> 9)
        b = (c + (c << 3)) & MASK32
        c = ((c << 21) | (c >> 11)) & MASK32
        d = (d + 1) & MASK32
        t = (t + d) & MASK32
        c = (c + t) & MASK32
        return t / 4294967296

    return next_float


def rng_from_seed(seed: str) -> Rng:
    seeder = xmur3(str(seed))
    return sfc32(seeder(), seeder(), seeder(), seeder())


def pick(rng: Rng, items: Optional[Sequence[T]]) -> Optional[T]:
    if not isinstance(items, (list, tuple)) or not items:
        return None
    return items[math.floor(rng() * len(items))]


def pick_n(rng: Rng, items: Optional[Sequence[T]], n: int) -> list[T]:
    """Sample up to ``n`` items without replacement, in draw order."""
    if not isinstance(items, (list, tuple)) or not items:
        return []
    pool = list(items)
    out = []
    while pool and len(out) < n:
        out.append(pool.pop(math.floor(rng() * len(pool))))
    return out


def clamp(value, low, high):
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def normalize_seed(seed) -> str:
    if seed is None:
        return "0"
    text = str(seed).strip()
    return text or "0"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36[rem])
    return "".join(reversed(digits))


def short_hash(text: str) -> str:
    return to_base36(xmur3(str(text))()).rjust(8, "0")[-8:]


def domain_tag(template_id: str) -> str:
    """TPL_PENAL_DETENTION -> PEN"""
    stem = str(template_id or "").removeprefix("TPL_")
    head = stem.split("_")[0] if stem else ""
    return (head[:3] or "DOM").upper()


def make_case_id(template_id: str, seed_norm: str) -> str:
    return f"RDC-{domain_tag(template_id)}-{short_hash(f'{template_id}:{seed_norm}')}"
