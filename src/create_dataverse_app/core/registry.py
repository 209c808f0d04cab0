"""Latest published version lookup.

The registry is queried directly first. When that fails we try the slower
``npm view <package> version``, which also works where direct registry access
is blocked and packages come from a private registry. When both fail the
latest version is unknown, and scaffolding goes ahead.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from create_dataverse_app.config import ScaffoldConfig
from create_dataverse_app.core.versions import is_newer

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class VersionResolutionError(Exception):
    """The latest version could not be determined from one source."""
    pass


# =============================================================================
# Results
# =============================================================================

class VersionSource(str, Enum):
    """Where a resolved version came from."""
    REGISTRY = "registry"
    FALLBACK = "fallback"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResolvedVersion:
    """Latest published version, tagged with its source."""
    version: Optional[str]
    source: VersionSource

    @property
    def known(self) -> bool:
        return self.version is not None

    def is_newer_than(self, current: str) -> bool:
        return self.known and is_newer(self.version, current)


# =============================================================================
# Resolver
# =============================================================================

class RemoteVersionResolver:
    """Resolve the latest published version of this tool.

    Args:
        config: Registry URL, package name and timeouts
        client: httpx client to use (tests pass one with a MockTransport)
    """

    def __init__(
        self,
        config: Optional[ScaffoldConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.config = config or ScaffoldConfig()
        self._client = client

    def fetch_registry_latest(self) -> str:
        """Read the ``latest`` dist-tag from the registry.

        Raises:
            VersionResolutionError: On network error, non-200 status or bad body
        """
        url = self.config.registry_url
        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self.config.registry_timeout_seconds)
            else:
                with httpx.Client(follow_redirects=True) as client:
                    response = client.get(url, timeout=self.config.registry_timeout_seconds)
        except httpx.HTTPError as e:
            raise VersionResolutionError(f"Registry request failed: {e}") from e

        if response.status_code != 200:
            raise VersionResolutionError(
                f"Registry returned {response.status_code} for {url}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise VersionResolutionError(f"Failed to parse registry JSON: {e}") from e

        latest = data.get("latest") if isinstance(data, dict) else None
        if not isinstance(latest, str) or not latest.strip():
            raise VersionResolutionError("Registry response has no 'latest' tag")
        return latest.strip()

    def fetch_fallback_latest(self) -> str:
        """Ask the package manager for the published version.

        Raises:
            VersionResolutionError: If npm is missing, fails or prints nothing
        """
        cmd = ["npm", "view", self.config.package_name, "version"]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.probe_timeout_seconds,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise VersionResolutionError(f"{' '.join(cmd)} failed: {e}") from e

        latest = result.stdout.strip()
        if not latest:
            raise VersionResolutionError(f"{' '.join(cmd)} printed no version")
        return latest

    def resolve_latest(self) -> ResolvedVersion:
        """Resolve the latest version; never raises."""
        try:
            return ResolvedVersion(self.fetch_registry_latest(), VersionSource.REGISTRY)
        except VersionResolutionError as e:
            logger.debug("%s; falling back to npm view", e)

        try:
            return ResolvedVersion(self.fetch_fallback_latest(), VersionSource.FALLBACK)
        except VersionResolutionError as e:
            logger.debug("%s; latest version unknown", e)

        return ResolvedVersion(None, VersionSource.UNKNOWN)
