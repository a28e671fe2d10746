# pkgregistry/core/versioning.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Tuple

from packaging.version import InvalidVersion, Version

from .errors import ValidationError


class SemVer(NamedTuple):
    """major.minor.patch triple; tuple ordering compares the parts as integers."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


INITIAL_VERSION = SemVer(1, 0, 0)


@dataclass(frozen=True)
class VersionRange:
    lower: SemVer
    upper: SemVer
    upper_inclusive: bool

    def contains(self, v: SemVer) -> bool:
        if v < self.lower:
            return False
        return v <= self.upper if self.upper_inclusive else v < self.upper

    def __str__(self) -> str:
        closing = "]" if self.upper_inclusive else ")"
        return f"[{self.lower}, {self.upper}{closing}"


def _release(text: str, min_parts: int) -> Tuple[int, ...]:
    # packaging accepts far more than a plain release ("v1.0", "1.0rc1", "1!2.0"),
    # so anything beyond digits and dots is rejected after parsing.
    s = text.strip()
    if not s or not s[0].isdigit():
        raise ValidationError(f"invalid version literal: {text!r}")
    try:
        v = Version(s)
    except InvalidVersion:
        raise ValidationError(f"invalid version literal: {text!r}")
    if v.epoch or v.pre or v.post is not None or v.dev is not None or v.local:
        raise ValidationError(f"invalid version literal: {text!r}")
    if not min_parts <= len(v.release) <= 3:
        raise ValidationError(f"invalid version literal: {text!r}")
    return v.release


def parse_version(text: str) -> SemVer:
    """Parse a full ``M.m.p`` literal."""
    major, minor, patch = _release(text, 3)
    return SemVer(major, minor, patch)


def _tilde(body: str) -> VersionRange:
    # ~1.2.3 => >=1.2.3 <1.3.0 ; ~1.2 => >=1.2.0 <1.3.0 ; ~1 => >=1.0.0 <2.0.0
    parts = _release(body, 1)
    if len(parts) == 1:
        (major,) = parts
        return VersionRange(SemVer(major, 0, 0), SemVer(major + 1, 0, 0), False)
    major, minor = parts[0], parts[1]
    patch = parts[2] if len(parts) == 3 else 0
    return VersionRange(SemVer(major, minor, patch), SemVer(major, minor + 1, 0), False)


def _caret(body: str) -> VersionRange:
    # ^1.2.3 => >=1.2.3 <2.0.0 ; ^0.2.3 => >=0.2.3 <0.3.0 ; ^0.0.3 => >=0.0.3 <0.0.4
    parts = _release(body, 1)
    major = parts[0]
    minor = parts[1] if len(parts) > 1 else 0
    patch = parts[2] if len(parts) > 2 else 0
    lower = SemVer(major, minor, patch)
    if major > 0 or len(parts) == 1:
        return VersionRange(lower, SemVer(major + 1, 0, 0), False)
    if minor > 0 or len(parts) == 2:
        return VersionRange(lower, SemVer(0, minor + 1, 0), False)
    return VersionRange(lower, SemVer(0, 0, patch + 1), False)


def parse_range(expr: str) -> VersionRange:
    """
    Parse a range expression into bounds.

    Supported forms: exact ``1.2.3`` and hyphenated ``1.0.0-2.0.0`` (closed
    intervals), tilde ``~1.2.3`` and caret ``^1.2.3`` (half-open).
    """
    if expr is None or not expr.strip():
        raise ValidationError("version range must not be empty")
    s = expr.strip()
    if s.startswith("~"):
        return _tilde(s[1:])
    if s.startswith("^"):
        return _caret(s[1:])
    if "-" in s:
        lo, hi = s.split("-", 1)
        lower, upper = parse_version(lo), parse_version(hi)
        if lower > upper:
            raise ValidationError(f"inverted version range: {expr!r}")
        return VersionRange(lower, upper, True)
    v = parse_version(s)
    return VersionRange(v, v, True)


def compare(v1: SemVer, v2: SemVer) -> int:
    return (v1 > v2) - (v1 < v2)


def latest(versions: Iterable[SemVer]) -> Optional[SemVer]:
    return max(versions, default=None)


def next_version(current: Optional[SemVer]) -> SemVer:
    """Plain patch increment with no carry; a name with no versions starts at 1.0.0."""
    if current is None:
        return INITIAL_VERSION
    return SemVer(current.major, current.minor, current.patch + 1)
