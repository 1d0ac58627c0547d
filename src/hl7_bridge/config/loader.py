"""
Configuration Loader - YAML, Profiles and Environment.

Layers, lowest precedence first:
    1. model defaults
    2. the YAML file
    3. an optional profile (<base>/config/profiles/<name>.yaml)
    4. environment overrides

Environment overrides:
    HL7_BRIDGE_SERVER_URL    -> fhir.server_url
    HL7_BRIDGE_FHIR_VERSION  -> fhir.fhir_version
    HL7_BRIDGE_INPUT_DIR     -> file_ingress.input_directory
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from hl7_bridge.config.models import BridgeConfig

logger = logging.getLogger(__name__)

PROFILES_DIRECTORY = Path("config") / "profiles"

ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "HL7_BRIDGE_SERVER_URL": ("fhir", "server_url"),
    "HL7_BRIDGE_FHIR_VERSION": ("fhir", "fhir_version"),
    "HL7_BRIDGE_INPUT_DIR": ("file_ingress", "input_directory"),
}


def deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with overlay merged in; nested sections merge key by key."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """Builds a validated BridgeConfig from its layers."""

    def __init__(
        self,
        base_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Args:
            base_path: Directory relative paths and profiles resolve against
            environ: Source of overrides (default os.environ)
        """
        self.base_path = Path(base_path) if base_path else Path(".")
        self.environ = os.environ if environ is None else environ

    def load(
        self,
        config_path: Union[str, Path],
        profile: Optional[str] = None,
    ) -> BridgeConfig:
        """
        Read, layer and validate a configuration file.

        Raises:
            FileNotFoundError: If the file or the profile is missing
            ValidationError: If the merged values are invalid
        """
        layers = self.read_yaml(self.resolve(config_path))
        if profile:
            layers = deep_merge(layers, self.read_profile(profile))
        return self.load_from_dict(layers)

    def load_from_dict(self, config_dict: Dict[str, Any]) -> BridgeConfig:
        """Apply environment overrides to a dict and validate it."""
        overrides = self.environment_overrides()
        if overrides:
            logger.info(f"Configuration overridden from environment: {sorted(overrides)}")
        return BridgeConfig.model_validate(deep_merge(config_dict, overrides))

    def resolve(self, path: Union[str, Path]) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.base_path / candidate

    def read_yaml(self, path: Path) -> Dict[str, Any]:
        """Parse one YAML document; an empty file is an empty config."""
        with path.open(encoding="utf-8") as stream:
            document = yaml.safe_load(stream)
        return document or {}

    def read_profile(self, profile: str) -> Dict[str, Any]:
        path = self.base_path / PROFILES_DIRECTORY / f"{profile}.yaml"
        if not path.is_file():
            raise FileNotFoundError(f"Profile not found: {profile} ({path})")
        return self.read_yaml(path)

    def environment_overrides(self) -> Dict[str, Any]:
        """Nested dict of the override variables that are set and non-empty."""
        sections: Dict[str, Any] = {}
        for variable, (section, key) in ENV_OVERRIDES.items():
            value = self.environ.get(variable)
            if value:
                sections.setdefault(section, {})[key] = value
        return sections


def load_config(
    config_path: Union[str, Path],
    profile: Optional[str] = None,
    base_path: Optional[Path] = None,
) -> BridgeConfig:
    """Load configuration with the process environment as override source."""
    return ConfigLoader(base_path=base_path).load(config_path, profile)
