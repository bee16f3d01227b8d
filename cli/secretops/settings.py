#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
Settings loader for the secrets manager cli.

Settings are read from TOML files and deep merged over built-in defaults.

Order (later files override earlier ones):
1. Built-in DEFAULT_SETTINGS
2. defaults/settings.toml
3. defaults/settings-custom.toml
4. File passed with --config
"""

import copy
import toml
from pathlib import Path
from typing import Dict, Optional

SETTINGS_DIR = "defaults"

DEFAULT_SETTINGS = {
    "profile": "",
    "region": "",
    "timeout": 30,
    "log_dir": "cli/logs",
    "parameters": {
        "type": "String",
        "tier": "Standard",
        "kms_key_id": "",
    },
    "secrets": {
        "kms_key_id": "",
        "force_delete": True,
        "recovery_window_days": 30,
    },
    "defaults": {
        "secret_name": "prod/aws/secret-key",
        "secret_value": "dummy-secret-value",
        "parameter_name": "/prod/aws/access-key-id",
        "parameter_value": "dummy-access-key",
        "pem_secret_name": "prod/ec2/keypair/my-key",
        "pem_file": "./test.pem",
        "pem_dummy_value": "dummy-pem-content",
    },
    "colors": {
        "prompt": "cyan",
        "option": "magenta",
        "output": "green",
        "output_value": "yellow",
        "success": "green",
        "error": "red",
        "warning": "yellow",
        "info": "blue",
        "box_text": "white",
    },
}


def default_settings_dir() -> Path:
    """<repo>/defaults, next to the cli directory"""
    return Path(__file__).resolve().parent.parent.parent / SETTINGS_DIR


class SettingsLoader:

    def __init__(self, settings_dir: Optional[Path] = None):
        self.settings_dir = Path(settings_dir) if settings_dir else default_settings_dir()
        self.loaded_files = []

    def _deep_update(self, base_dict: Dict, update_dict: Dict) -> None:
        """Recursively update a dictionary

        Args:
            base_dict (Dict): Base dictionary to update
            update_dict (Dict): Dictionary with updates to apply
        """
        for key, value in update_dict.items():
            if isinstance(value, dict) and key in base_dict and isinstance(base_dict[key], dict):
                self._deep_update(base_dict[key], value)
            else:
                base_dict[key] = value

    def _read(self, settings_file: Path) -> Dict:
        """Read one TOML settings file

        Raises:
            ValueError: If the file is not valid TOML
            PermissionError: If the file cannot be accessed due to permissions
        """
        try:
            with open(settings_file) as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            raise ValueError(f"Invalid TOML in settings file {settings_file}: {str(e)}")
        except PermissionError:
            raise PermissionError(f"Unable to access settings file: {settings_file}")

    def settings_files(self, config_file: Optional[Path] = None) -> list:
        files = [
            self.settings_dir / "settings.toml",
            self.settings_dir / "settings-custom.toml",
        ]
        if config_file:
            files.append(Path(config_file))
        return files

    def load(self, config_file: Optional[Path] = None) -> Dict:
        """Load and merge settings

        Args:
            config_file (Path, optional): Extra settings file; must exist

        Returns:
            Dict: Merged settings

        Raises:
            FileNotFoundError: If config_file was given but does not exist
        """
        if config_file and not Path(config_file).exists():
            raise FileNotFoundError(f"Settings file not found: {config_file}")

        settings = copy.deepcopy(DEFAULT_SETTINGS)
        for settings_file in self.settings_files(config_file):
            if settings_file.exists():
                self._deep_update(settings, self._read(settings_file))
                self.loaded_files.append(settings_file)
        return settings
