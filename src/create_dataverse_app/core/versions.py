"""Version parsing and comparison helpers.

Tool output is rarely a clean version string (``git version 2.41.0.windows.1``,
``v18.17.0``), so everything here coerces first and compares second.
"""

import re
from typing import Optional

from packaging.version import InvalidVersion, Version

_COERCE_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def coerce_version(text: Optional[str]) -> Optional[Version]:
    """Pull the first ``major[.minor[.patch]]`` out of free-form text.

    Pre-release and build metadata are dropped, so ``15.0.0-nightly``
    coerces to ``15.0.0``.
    """
    if not text:
        return None
    match = _COERCE_PATTERN.search(text)
    if not match:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return Version(f"{major}.{minor}.{patch}")


def parse_version(text: Optional[str]) -> Optional[Version]:
    """Parse a version strictly, falling back to coercion."""
    if not text:
        return None
    cleaned = text.strip()
    try:
        return Version(cleaned)
    except InvalidVersion:
        return coerce_version(cleaned)


def is_at_least(installed: Optional[str], minimum: str) -> bool:
    """True when ``installed`` is at or above ``minimum``."""
    found = coerce_version(installed)
    if found is None:
        return False
    return found >= coerce_version(minimum)


def is_below(installed: Optional[str], maximum: str) -> bool:
    """True when ``installed`` is strictly below ``maximum``."""
    found = coerce_version(installed)
    if found is None:
        return False
    return found < coerce_version(maximum)


def is_newer(latest: Optional[str], current: str) -> bool:
    """True when ``latest`` is strictly newer than ``current``.

    Unparseable input never counts as newer.
    """
    latest_version = parse_version(latest)
    current_version = parse_version(current)
    if latest_version is None or current_version is None:
        return False
    return latest_version > current_version
