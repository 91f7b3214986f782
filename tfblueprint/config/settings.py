"""
User settings for tfblueprint.

Settings live in a single JSON file. Anything the file leaves out falls
back to DEFAULT_SETTINGS, so older files keep working when new keys are
added.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .defaults import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]):
    """Merge ``overrides`` into ``base`` in place, descending into nested dicts."""
    for key, value in overrides.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge(current, value)
        else:
            base[key] = value


class Settings:
    """
    Persistent user settings with dotted-key access.

    The file is ``~/.config/tfblueprint/settings.json`` (honouring
    ``XDG_CONFIG_HOME``) or ``%APPDATA%\\tfblueprint\\settings.json`` on
    Windows. Loading never creates it; only save() does.

    Example:
        >>> settings = Settings()
        >>> settings.get("regions.aws")
        'us-east-1'
    """

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else self._get_config_dir()
        self.config_file = self.config_dir / SETTINGS_FILE
        self._settings: Dict[str, Any] = copy.deepcopy(DEFAULT_SETTINGS)
        self.load()

    @staticmethod
    def _get_config_dir() -> Path:
        if os.name == "nt":
            root = os.environ.get("APPDATA") or os.path.expanduser("~")
        else:
            root = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
        return Path(root) / "tfblueprint"

    def load(self):
        """Reset to the defaults, then apply the settings file if there is one."""
        self._settings = copy.deepcopy(DEFAULT_SETTINGS)
        if not self.config_file.is_file():
            logger.debug(f"No settings file at {self.config_file}, using defaults")
            return

        try:
            stored = json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Ignoring unreadable settings file {self.config_file}: {e}")
            return

        if not isinstance(stored, dict):
            logger.error(f"Ignoring settings file {self.config_file}: expected a JSON object")
            return
        _merge(self._settings, stored)
        logger.debug(f"Loaded settings from {self.config_file}")

    def save(self):
        """Write the current settings, creating the config directory if needed."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(json.dumps(self._settings, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not write settings to {self.config_file}: {e}")
            return
        logger.info(f"Saved settings to {self.config_file}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a setting, e.g. ``get("confirmations.destroy")``.

        Returns ``default`` when any part of the dotted path is missing.
        """
        node: Any = self._settings
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any):
        """Store a setting under a dotted key, creating intermediate sections."""
        *parents, leaf = key.split(".")
        node = self._settings
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def region_for(self, provider: str) -> Optional[str]:
        """Region written to example var files for ``provider``, None when unset."""
        return self.get(f"regions.{provider}") or None

    def confirm_required(self, operation: str) -> bool:
        """Whether ``apply`` or ``destroy`` should prompt before running."""
        return bool(self.get(f"confirmations.{operation}", True))

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._settings)
