"""Project name validation.

A project name becomes the ``name`` of the generated package, so it has to
follow npm package naming rules and must not collide with one of the
template's own runtime dependencies.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List
from urllib.parse import quote

# Characters encodeURIComponent leaves alone, on top of quote()'s defaults
_URL_SAFE = "!~*'()"

MAX_NAME_LENGTH = 214

BLACKLISTED_NAMES = ("node_modules", "favicon.ico")

SPECIAL_CHARACTERS = re.compile(r"[~'!()*]")

SCOPED_PACKAGE_PATTERN = re.compile(r"^(?:@([^/]+?)/)?([^/]+?)$")

NODE_CORE_MODULES = frozenset({
    "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
    "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
    "events", "fs", "http", "http2", "https", "inspector", "module", "net",
    "os", "path", "perf_hooks", "process", "punycode", "querystring",
    "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
    "trace_events", "tty", "url", "util", "v8", "vm", "wasi",
    "worker_threads", "zlib",
})


# =============================================================================
# Exceptions
# =============================================================================

class ProjectNameError(Exception):
    """Base exception for an unusable project name."""

    def __init__(self, message: str, name: str):
        super().__init__(message)
        self.name = name


class InvalidPackageNameError(ProjectNameError):
    """Name breaks npm naming restrictions."""

    def __init__(self, name: str, problems: List[str]):
        super().__init__(
            f'Cannot create a project named "{name}" because of npm naming restrictions',
            name,
        )
        self.problems = problems


class ReservedNameError(ProjectNameError):
    """Name matches a dependency of the template."""

    def __init__(self, name: str, reserved: List[str]):
        super().__init__(
            f'Cannot create a project named "{name}" because a dependency '
            "with the same name exists",
            name,
        )
        self.reserved = reserved


# =============================================================================
# Validation
# =============================================================================

@dataclass
class NameValidationResult:
    """Outcome of checking a name against npm naming rules."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)  # reported, never fatal

    @property
    def valid_for_new_packages(self) -> bool:
        return not self.errors and not self.warnings

    @property
    def problems(self) -> List[str]:
        return self.errors + self.warnings


def _is_url_safe(text: str) -> bool:
    return quote(text, safe=_URL_SAFE) == text


def check_package_name(name: str) -> NameValidationResult:
    """Check ``name`` against npm package naming rules."""
    result = NameValidationResult()

    if not name:
        result.errors.append("name length must be greater than zero")
        return result

    if name.startswith("."):
        result.errors.append("name cannot start with a period")
    if name.startswith("_"):
        result.errors.append("name cannot start with an underscore")
    if name.strip() != name:
        result.errors.append("name cannot contain leading or trailing spaces")

    for blacklisted in BLACKLISTED_NAMES:
        if name.lower() == blacklisted:
            result.errors.append(f"{blacklisted} is a blacklisted name")

    if name.lower() in NODE_CORE_MODULES:
        result.notices.append(f"{name} is a core module name")

    if len(name) > MAX_NAME_LENGTH:
        result.warnings.append(
            f"name can no longer contain more than {MAX_NAME_LENGTH} characters"
        )
    if name.lower() != name:
        result.warnings.append("name can no longer contain capital letters")
    if SPECIAL_CHARACTERS.search(name.split("/")[-1]):
        result.warnings.append(
            "name can no longer contain special characters (\"~'!()*\")"
        )

    if not _is_url_safe(name):
        match = SCOPED_PACKAGE_PATTERN.match(name)
        if match and match.group(1) is not None:
            scope, package = match.groups()
            if package.startswith("."):
                result.errors.append("name cannot start with a period")
            if _is_url_safe(scope) and _is_url_safe(package):
                return result
        result.errors.append("name can only contain URL-friendly characters")

    return result


def validate_project_name(name: str, reserved_names: Iterable[str]) -> NameValidationResult:
    """Validate a project name.

    Args:
        name: Proposed project name (basename of the target directory)
        reserved_names: Dependency names the project may not take

    Returns:
        The validation result (notices may be non-empty)

    Raises:
        InvalidPackageNameError: If npm naming rules are broken
        ReservedNameError: If the name matches a reserved dependency name
    """
    result = check_package_name(name)
    if not result.valid_for_new_packages:
        raise InvalidPackageNameError(name, result.problems)

    reserved = sorted(reserved_names)
    if name.lower() in {r.lower() for r in reserved}:
        raise ReservedNameError(name, reserved)

    return result
