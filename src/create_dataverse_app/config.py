"""Configuration for create-dataverse-app.

Defaults cover the public template and registry. A JSON file can override any
field, either passed explicitly (``--config``) or named by the
``CREATE_DATAVERSE_APP_CONFIG`` environment variable.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CREATE_DATAVERSE_APP_CONFIG"

PACKAGE_NAME = "create-dataverse-app"


@dataclass
class ScaffoldConfig:
    """Configuration for a scaffold run.

    All hardcoded values of the pipeline live here.
    """
    package_name: str = PACKAGE_NAME

    # Clone target
    template_repository: str = "https://github.com/dataverse-os/create-dataverse-app.git"

    # Self-version gate
    registry_url: str = f"https://registry.npmjs.org/-/package/{PACKAGE_NAME}/dist-tags"
    registry_timeout_seconds: float = 10.0

    # External processes
    probe_timeout_seconds: int = 30
    clone_timeout_seconds: int = 600  # 10 minutes

    # Toolchain minimums
    min_npm_version: str = "6.0.0"
    min_node_version: str = "16.0.0"
    min_git_version: str = "1.7.10"
    min_yarn_pnp_version: str = "1.12.0"
    max_yarn_pnp_version: str = "2.0.0"  # exclusive

    # Runtime dependencies of the template; a project cannot share their names
    reserved_names: Tuple[str, ...] = field(
        default_factory=lambda: ("react", "react-dom", "react-scripts")
    )

    # Remove what a failed clone left behind
    cleanup_on_failure: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["reserved_names"] = list(self.reserved_names)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ScaffoldConfig":
        values = {
            k: v for k, v in data.items()
            if k in cls.__dataclass_fields__
        }
        if "reserved_names" in values:
            reserved = values["reserved_names"]
            if isinstance(reserved, str):
                reserved = [reserved]
            values["reserved_names"] = tuple(reserved)
        return cls(**values)


def load_config(path: Optional[Path] = None) -> ScaffoldConfig:
    """Load configuration from a JSON file.

    Args:
        path: Config file; falls back to $CREATE_DATAVERSE_APP_CONFIG

    Returns:
        ScaffoldConfig (defaults when no file is given, found, or readable)
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return ScaffoldConfig()
        path = Path(env_path)

    path = Path(path).expanduser()
    if not path.exists():
        logger.debug("Config file %s not found, using defaults", path)
        return ScaffoldConfig()

    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Config file %s unreadable: %s. Using defaults.", path, e)
        return ScaffoldConfig()

    if not isinstance(data, dict):
        logger.warning("Config file %s must hold a JSON object. Using defaults.", path)
        return ScaffoldConfig()

    return ScaffoldConfig.from_dict(data)
