"""Version string helpers: parsing, ordering and pre-release detection."""

import re
from functools import cmp_to_key
from typing import Optional

from depman.domain.models import DiffType

# A pre-release marker only counts when it sits on a boundary, so names such
# as "alabaster" or a segment like "1.0.0b" are told apart.
_PRE_RELEASE_PATTERN = re.compile(r"(^|[.\-_\d])(a|alpha|b|beta|rc|dev|post)(\d|$|[.\-_])")


def _strip_prefix(version: str) -> str:
    return version[1:] if version.startswith("v") else version


def parse_version(version: str) -> Optional[list[int]]:
    """
    Parse a version string into numeric components.

    A leading "v" is ignored and anything from the first character that is
    neither a digit nor a dot is dropped ("1.0.0rc1" -> [1, 0, 0]). Short
    versions are padded to three components.

    Returns:
        List of integers, or None when the string is not a plain numeric version
    """
    version = _strip_prefix(version.strip())
    for index, char in enumerate(version):
        if char != "." and not char.isdigit():
            version = version[:index]
            break

    if not version:
        return None

    parts: list[int] = []
    for piece in version.split("."):
        if not piece.isdigit():
            return None
        parts.append(int(piece))

    while len(parts) < 3:
        parts.append(0)
    return parts


def compute_diff(current: str, latest: str) -> DiffType:
    """Classify the update from current to latest as major/minor/patch."""
    current_parts = parse_version(current)
    latest_parts = parse_version(latest)
    if current_parts is None or latest_parts is None:
        return DiffType.UNKNOWN

    if current_parts[0] != latest_parts[0]:
        return DiffType.MAJOR
    if current_parts[1] != latest_parts[1]:
        return DiffType.MINOR
    if current_parts[2] != latest_parts[2]:
        return DiffType.PATCH
    return DiffType.NONE


def is_stable_version(version: str) -> bool:
    """Return False for alpha/beta/rc/dev/post releases."""
    return _PRE_RELEASE_PATTERN.search(version.lower()) is None


def _component(piece: str) -> int:
    try:
        return int(piece)
    except ValueError:
        return 0


def compare_versions(a: str, b: str) -> int:
    """
    Compare two dotted versions numerically.

    Components are compared left to right, missing trailing components count
    as zero and non-numeric components count as zero.

    Returns:
        Negative, zero or positive like a classic cmp function
    """
    parts_a = _strip_prefix(a).split(".")
    parts_b = _strip_prefix(b).split(".")
    for index in range(max(len(parts_a), len(parts_b))):
        num_a = _component(parts_a[index]) if index < len(parts_a) else 0
        num_b = _component(parts_b[index]) if index < len(parts_b) else 0
        if num_a != num_b:
            return num_a - num_b
    return 0


def sort_versions_desc(versions: list[str]) -> list[str]:
    """Return versions ordered newest first."""
    return sorted(versions, key=cmp_to_key(compare_versions), reverse=True)
