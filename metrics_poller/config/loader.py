"""YAML configuration loading with ${ENV_VAR} substitution."""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from .models import MetricsPollerConfig

# ${NAME} or ${NAME:-fallback}
_ENV_PATTERN = re.compile(r'\$\{(\w+)(?::-([^}]*))?\}')


class ConfigLoader:
    """Load and validate metrics poller configuration."""

    @staticmethod
    def load_from_file(config_path: str) -> MetricsPollerConfig:
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            MetricsPollerConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        return ConfigLoader.load_from_string(config_file.read_text(encoding='utf-8'))

    @staticmethod
    def load_from_string(text: str) -> MetricsPollerConfig:
        """Parse, substitute and validate YAML configuration text."""
        raw_config = yaml.safe_load(text) or {}
        if not isinstance(raw_config, dict):
            raise ValueError("Configuration root must be a mapping")

        return MetricsPollerConfig.model_validate(
            ConfigLoader._substitute_env_vars(raw_config)
        )

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively replace ${VAR} and ${VAR:-default} placeholders.

        Unset or empty variables fall back to the default, or to an
        empty string when no default is given. Only
        string values are touched; keys are left as written.
        """
        if isinstance(obj, str):
            return _ENV_PATTERN.sub(
                lambda m: os.getenv(m.group(1)) or m.group(2) or '', obj
            )

        if isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        if isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
