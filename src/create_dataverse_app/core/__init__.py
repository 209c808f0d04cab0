"""Core modules for create-dataverse-app.

This package contains the scaffold pipeline:
- naming: project name validation
- directory: target directory safety check
- toolchain: local tool version probes
- registry: latest published version lookup
- orchestrator: runs the checks and the clone
"""

from create_dataverse_app.core.naming import (
    NameValidationResult,
    ProjectNameError,
    InvalidPackageNameError,
    ReservedNameError,
    check_package_name,
    validate_project_name,
)

from create_dataverse_app.core.directory import (
    DirectoryConflict,
    UnsafeDirectoryError,
    check_and_clean,
)

from create_dataverse_app.core.toolchain import (
    ToolchainError,
    ToolchainVersionInfo,
    ToolchainVersionProbe,
    YarnPnpSupport,
    is_using_yarn,
)

from create_dataverse_app.core.registry import (
    RemoteVersionResolver,
    ResolvedVersion,
    VersionResolutionError,
    VersionSource,
)

from create_dataverse_app.core.orchestrator import (
    OutcomeStatus,
    ScaffoldOptions,
    ScaffoldOrchestrator,
    ScaffoldOutcome,
    ScaffoldState,
)

__all__ = [
    # Naming
    "NameValidationResult",
    "ProjectNameError",
    "InvalidPackageNameError",
    "ReservedNameError",
    "check_package_name",
    "validate_project_name",
    # Directory
    "DirectoryConflict",
    "UnsafeDirectoryError",
    "check_and_clean",
    # Toolchain
    "ToolchainError",
    "ToolchainVersionInfo",
    "ToolchainVersionProbe",
    "YarnPnpSupport",
    "is_using_yarn",
    # Registry
    "RemoteVersionResolver",
    "ResolvedVersion",
    "VersionResolutionError",
    "VersionSource",
    # Orchestrator
    "OutcomeStatus",
    "ScaffoldOptions",
    "ScaffoldOrchestrator",
    "ScaffoldOutcome",
    "ScaffoldState",
]
