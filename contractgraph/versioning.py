"""Semantic version helpers shared by the impact classifier and capability registry."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .errors import InvalidVersionError
from .models import BumpType

# SemVer 2.0.0 grammar (https://semver.org), no leading "v".
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

REF_SEPARATOR = "@"


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    build: Tuple[str, ...] = ()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def parse_version(text: str) -> Version:
    """Parse *text* with the strict semver grammar.

    Raises:
        InvalidVersionError: if *text* is not a valid semantic version.
    """
    if not isinstance(text, str):
        raise InvalidVersionError(str(text))
    match = _SEMVER_RE.fullmatch(text)
    if match is None:
        raise InvalidVersionError(text)
    major, minor, patch, pre, build = match.groups()
    return Version(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        prerelease=tuple(pre.split(".")) if pre else (),
        build=tuple(build.split(".")) if build else (),
    )


def is_valid_version(text: str) -> bool:
    try:
        parse_version(text)
    except InvalidVersionError:
        return False
    return True


def _compare_identifiers(left: str, right: str) -> int:
    left_num, right_num = left.isdigit(), right.isdigit()
    if left_num and right_num:
        a, b = int(left), int(right)
        return (a > b) - (a < b)
    # Numeric identifiers always sort below alphanumeric ones
    if left_num != right_num:
        return -1 if left_num else 1
    return (left > right) - (left < right)


def compare_versions(left: Union[str, Version], right: Union[str, Version]) -> int:
    """Return -1, 0 or 1 following semver precedence (build metadata ignored)."""
    a = left if isinstance(left, Version) else parse_version(left)
    b = right if isinstance(right, Version) else parse_version(right)

    core_a, core_b = (a.major, a.minor, a.patch), (b.major, b.minor, b.patch)
    if core_a != core_b:
        return -1 if core_a < core_b else 1

    if a.prerelease == b.prerelease:
        return 0
    # A release outranks any of its pre-releases
    if not a.prerelease:
        return 1
    if not b.prerelease:
        return -1

    for x, y in zip(a.prerelease, b.prerelease):
        result = _compare_identifiers(x, y)
        if result:
            return result
    size_a, size_b = len(a.prerelease), len(b.prerelease)
    return (size_a > size_b) - (size_a < size_b)


def bump_version(current: str, bump_type: BumpType) -> str:
    """Increment *current* by *bump_type*.

    Pre-release and build metadata are dropped from the result.
    """
    version = parse_version(current)
    if bump_type == "major":
        return f"{version.major + 1}.0.0"
    if bump_type == "minor":
        return f"{version.major}.{version.minor + 1}.0"
    if bump_type == "patch":
        return f"{version.major}.{version.minor}.{version.patch + 1}"
    raise ValueError(f"Unknown bump type '{bump_type}'")


def determine_bump_type(has_breaking: bool, has_non_breaking: bool) -> BumpType:
    if has_breaking:
        return "major"
    if has_non_breaking:
        return "minor"
    return "patch"


def format_ref_key(name: str, version: str) -> str:
    return f"{name}{REF_SEPARATOR}{version}"


def parse_ref_key(ref_key: str) -> Tuple[str, Optional[str]]:
    """Split ``name@version`` into its parts; a bare name has no version."""
    name, sep, version = ref_key.rpartition(REF_SEPARATOR)
    if not sep:
        return ref_key, None
    if not name:
        raise ValueError(f"Invalid spec reference '{ref_key}'")
    return name, version or None
