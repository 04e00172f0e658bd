"""Local configuration for ramorie.

Single source of truth for the on-disk state shared by the CLI and the MCP
server: backend URL, API key, and the active project/context identifiers.

Convention-based discovery: config lives in ``~/.ramorie/config.json``;
``RAMORIE_HOME`` relocates the directory.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

RAMORIE_DIR_NAME = ".ramorie"
CONFIG_FILENAME = "config.json"
DEFAULT_API_URL = "https://api.ramorie.com/v1"

ENV_HOME = "RAMORIE_HOME"
ENV_API_URL = "RAMORIE_API_URL"
ENV_API_KEY = "RAMORIE_API_KEY"

CONFIG_KEYS = ("api_url", "api_key", "active_project_id", "active_context_id")


@dataclass
class CliConfig:
    api_url: str = DEFAULT_API_URL
    api_key: str = ""
    active_project_id: str = ""
    active_context_id: str = ""


def config_dir() -> Path:
    """Return the ramorie config directory (not created)."""
    override = os.environ.get(ENV_HOME, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / RAMORIE_DIR_NAME


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


def _backup_corrupt_config(config_path: Path) -> None:
    """Back up a corrupt config.json before callers overwrite it with defaults."""
    backup_path = config_path.parent / (config_path.name + ".bak")
    try:
        shutil.copy2(config_path, backup_path)
    except OSError:
        logger.debug("Could not back up corrupt config to %s", backup_path, exc_info=True)


def read_config(directory: Path | None = None, *, apply_env: bool = True) -> CliConfig:
    """Read config.json. Returns defaults if missing or corrupt.

    Environment overrides (``RAMORIE_API_URL``, ``RAMORIE_API_KEY``) are
    applied on top of the file unless *apply_env* is false.
    """
    config_path = (directory or config_dir()) / CONFIG_FILENAME
    config = CliConfig()
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            _backup_corrupt_config(config_path)
            logger.warning("Corrupt config %s: %s (backed up to .bak)", config_path, exc)
            data = {}
        if not isinstance(data, dict):
            _backup_corrupt_config(config_path)
            logger.warning("Config %s is not a JSON object; backed up to .bak, using defaults", config_path)
            data = {}
        for key in CONFIG_KEYS:
            value = data.get(key)
            if isinstance(value, str):
                setattr(config, key, value.strip())
        if not config.api_url:
            config.api_url = DEFAULT_API_URL

    if apply_env:
        env_url = os.environ.get(ENV_API_URL, "").strip()
        if env_url:
            config.api_url = env_url
        env_key = os.environ.get(ENV_API_KEY, "").strip()
        if env_key:
            config.api_key = env_key
    return config


def write_config(config: CliConfig, directory: Path | None = None) -> Path:
    """Write config.json atomically and return its path."""
    target_dir = directory or config_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    config_path = target_dir / CONFIG_FILENAME
    write_atomic(config_path, json.dumps(asdict(config), indent=2) + "\n")
    return config_path
