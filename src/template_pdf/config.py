"""
Configuration loading for the template PDF pipeline.

Settings are assembled from defaults, an optional YAML file and
environment variables, in that order of precedence.
"""

import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Mapping
from dataclasses import dataclass

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ('true', '1', 'yes', 'on'):
        return True
    if lowered in ('false', '0', 'no', 'off'):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


# Environment variable -> (settings attribute, converter)
ENV_VARIABLES = {
    'GITHUB_API_TOKEN': ('github_token', str),
    'GITHUB_OWNER': ('github_owner', str),
    'GITHUB_TEMPLATE_REPO': ('github_repo', str),
    'GITHUB_SYNC_BRANCH': ('sync_branch', str),
    'GITHUB_API_URL': ('github_api_url', str),
    'PROCESS_ACCESS_TOKEN': ('process_access_token', str),
    'CHAT_ACCESS_TOKEN': ('chat_access_token', str),
    'TEMPLATE_PDF_TMP_DIR': ('temp_dir', Path),
    'TEMPLATE_PDF_REQUEST_TIMEOUT': ('request_timeout', float),
    'TEMPLATE_PDF_LOG_LEVEL': ('log_level', str.upper),
    'TEMPLATE_PDF_LOG_FILE': ('log_file', Path),
    'TEMPLATE_PDF_LOG_JSON': ('log_json', parse_bool),
}

# YAML section -> {key: settings attribute}
YAML_SECTIONS = {
    'github': {
        'token': 'github_token',
        'owner': 'github_owner',
        'repo': 'github_repo',
        'sync_branch': 'sync_branch',
        'api_url': 'github_api_url',
        'request_timeout': 'request_timeout',
    },
    'process': {
        'access_token': 'process_access_token',
    },
    'chat': {
        'access_token': 'chat_access_token',
        'upload_url': 'chat_upload_url',
    },
    'render': {
        'temp_dir': 'temp_dir',
        'dpi': 'render_dpi',
        'disable_smart_shrinking': 'disable_smart_shrinking',
    },
    'logging': {
        'level': 'log_level',
        'file': 'log_file',
        'json': 'log_json',
    },
}


@dataclass
class Settings:
    """Runtime settings for fetching, rendering and uploading."""

    # Version source
    github_token: Optional[str] = None
    github_owner: str = ""
    github_repo: str = ""
    sync_branch: str = "master"
    github_api_url: str = "https://api.github.com"
    request_timeout: Optional[float] = None  # seconds, unset means no timeout

    # Process handler
    process_access_token: Optional[str] = None

    # Upload sink
    chat_access_token: Optional[str] = None
    chat_upload_url: str = "https://slack.com/api/files.upload"

    # Rendering
    temp_dir: Optional[Path] = None
    render_dpi: int = 196
    disable_smart_shrinking: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    log_json: bool = False

    def __post_init__(self):
        if self.temp_dir is not None and not isinstance(self.temp_dir, Path):
            self.temp_dir = Path(self.temp_dir)
        if self.log_file is not None and not isinstance(self.log_file, Path):
            self.log_file = Path(self.log_file)
        self.log_level = str(self.log_level).upper()
        self.log_json = parse_bool(self.log_json)

    @classmethod
    def from_yaml(cls, config_path: Path) -> "Settings":
        """
        Load settings from a YAML file.

        Args:
            config_path: Path to YAML configuration

        Returns:
            Settings populated from the file

        Raises:
            ConfigurationError: If the file is missing or not valid YAML
        """
        settings = cls()
        settings.apply_yaml(config_path)
        return settings

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Load settings from the environment.

        If ``TEMPLATE_PDF_CONFIG`` names a YAML file it is applied first,
        then individual environment variables override it.
        """
        environ = os.environ if environ is None else environ
        settings = cls()

        config_file = environ.get('TEMPLATE_PDF_CONFIG')
        if config_file:
            settings.apply_yaml(Path(config_file))

        for env_name, (attribute, converter) in ENV_VARIABLES.items():
            value = environ.get(env_name)
            if value is None or value == "":
                continue
            try:
                setattr(settings, attribute, converter(value))
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_name}: {value!r}") from e

        return settings

    def apply_yaml(self, config_path: Path) -> None:
        """Overlay values from a YAML configuration file onto these settings."""
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in config {config_path}: {e}")
            raise ConfigurationError(f"Invalid configuration: {e}")

        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration must be a mapping: {config_path}")

        for section, keys in YAML_SECTIONS.items():
            values = raw_config.get(section) or {}
            for key, attribute in keys.items():
                if key in values and values[key] is not None:
                    setattr(self, attribute, values[key])

        try:
            self.__post_init__()
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e
        logger.info(f"Loaded configuration from {config_path}")

    @property
    def repository(self) -> str:
        return f"{self.github_owner}/{self.github_repo}"

    def as_dict(self) -> Dict[str, Any]:
        """Settings with secrets masked, for logging."""
        masked = dict(self.__dict__)
        for secret in ('github_token', 'process_access_token', 'chat_access_token'):
            if masked.get(secret):
                masked[secret] = '***'
        return masked
