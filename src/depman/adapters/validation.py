"""Validation of package names and requirement specifiers typed by the user."""

import re

from depman.domain.exceptions import InvalidPackageSpecError

MAX_NAME_LENGTH = 214

# PEP 508 distribution name: alphanumeric at both ends, . _ - allowed inside
_NAME_PATTERN = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9._-]*[A-Za-z0-9])?$")

# Shell metacharacters are never valid in a specifier
_UNSAFE_CHARS = re.compile(r"[;&|$`<>]")
_UNSAFE_VERSION_CHARS = re.compile(r"[;&|$`]")

# Longer operators first so "<=" is not read as "<"
_SPEC_OPERATOR = re.compile(r"==|!=|<=|>=|~=|<|>|@")

VERSION_OPERATORS = ("==", "!=", "<=", ">=", "~=", "<", ">")


def validate_package_name(name: str) -> str:
    """
    Validate a bare package name.

    Returns:
        The name with surrounding whitespace removed

    Raises:
        InvalidPackageSpecError: If the name is empty, too long or unsafe
    """
    name = name.strip()
    if not name:
        raise InvalidPackageSpecError("Package name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidPackageSpecError(
            f"Package name too long (max {MAX_NAME_LENGTH} characters)"
        )
    if _UNSAFE_CHARS.search(name):
        raise InvalidPackageSpecError(f"Package name contains invalid characters: {name}")
    if name[0] in "-_." or ".." in name:
        raise InvalidPackageSpecError(f"Invalid package name: {name}")
    if not _NAME_PATTERN.match(name):
        raise InvalidPackageSpecError(f"Invalid package name: {name}")
    return name


def split_package_spec(spec: str) -> tuple[str, str]:
    """Split "name>=1.0" into ("name", ">=1.0"); the version part may be empty."""
    match = _SPEC_OPERATOR.search(spec)
    if match is None or match.start() == 0:
        return spec, ""
    return spec[: match.start()], spec[match.start():]


def validate_version_spec(version_spec: str) -> None:
    """
    Validate the version part of a requirement.

    Raises:
        InvalidPackageSpecError: If it does not start with a known operator
    """
    if not version_spec:
        return
    if version_spec.startswith("@"):
        if not version_spec[1:].strip():
            raise InvalidPackageSpecError("Direct reference after '@' cannot be empty")
        return
    if not version_spec.startswith(VERSION_OPERATORS):
        raise InvalidPackageSpecError(f"Invalid version specifier: {version_spec}")
    if _UNSAFE_VERSION_CHARS.search(version_spec):
        raise InvalidPackageSpecError(
            f"Version specifier contains invalid characters: {version_spec}"
        )


def validate_package_spec(spec: str) -> str:
    """
    Validate a full requirement such as "requests", "flask==2.0.1" or "pkg @ url".

    Returns:
        The normalized specifier ready to pass to the package manager

    Raises:
        InvalidPackageSpecError: If the name or the version part is rejected
    """
    spec = spec.strip()
    if not spec:
        raise InvalidPackageSpecError("Package spec cannot be empty")

    name, version_spec = split_package_spec(spec)
    name = validate_package_name(name)
    version_spec = version_spec.strip()
    validate_version_spec(version_spec)
    if version_spec.startswith("@"):
        return f"{name} {version_spec}"
    return name + version_spec
