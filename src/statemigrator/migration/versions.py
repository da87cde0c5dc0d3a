"""
Schema version helpers.

Schema versions are plain non-negative integers with a strict total order. A
transition is only ever defined between adjacent versions; longer upgrades are
compositions of adjacent transitions applied in order.
"""

from typing import Any, Tuple

from loguru import logger

from statemigrator.exceptions import VersionError

# Current version of the application resource schema
CURRENT_VERSION: int = 1

# Every version a stored record may legitimately carry
SUPPORTED_VERSIONS: Tuple[int, ...] = (0, 1)


def parse_schema_version(value: Any) -> int:
    """
    Normalise a stored schema version to ``int``.

    Accepts integers and decimal strings such as ``"1"``. Booleans, negative
    numbers and anything else are rejected.

    Raises:
        VersionError: If the value is not a usable schema version
    """
    if isinstance(value, bool):
        raise VersionError(
            f"Schema version must be an integer, got {value!r}",
            error_code="VERSION_001",
            context={"version": value},
        )

    if isinstance(value, int):
        version = value
    elif isinstance(value, str) and value.strip().isdigit():
        version = int(value.strip())
    else:
        raise VersionError(
            f"Invalid schema version format: {value!r}",
            error_code="VERSION_001",
            context={"version": value, "version_type": type(value).__name__},
        )

    if version < 0:
        raise VersionError(
            f"Schema version cannot be negative: {version}",
            error_code="VERSION_001",
            context={"version": version},
        )

    return version


def compare_versions(version1: Any, version2: Any) -> int:
    """
    Compare two schema versions.

    Returns:
        -1 if version1 < version2, 0 if equal, 1 if version1 > version2
    """
    v1 = parse_schema_version(version1)
    v2 = parse_schema_version(version2)
    return (v1 > v2) - (v1 < v2)


def is_adjacent(from_version: Any, to_version: Any) -> bool:
    """True when ``to_version`` directly follows ``from_version``."""
    return parse_schema_version(to_version) == parse_schema_version(from_version) + 1


def is_current_version(version: Any) -> bool:
    try:
        return parse_schema_version(version) == CURRENT_VERSION
    except VersionError:
        logger.debug(f"Unparseable schema version treated as not current: {version!r}")
        return False


def is_supported_version(version: Any) -> bool:
    try:
        return parse_schema_version(version) in SUPPORTED_VERSIONS
    except VersionError:
        return False


__all__ = [
    "CURRENT_VERSION",
    "SUPPORTED_VERSIONS",
    "parse_schema_version",
    "compare_versions",
    "is_adjacent",
    "is_current_version",
    "is_supported_version",
]
