"""
Settings loading and persistence.

Settings are read from ``<config home>/cfstream/config.yaml``, where the
config home is ``$XDG_CONFIG_HOME`` or ``~/.config`` (``CFSTREAM_CONFIG``
names another file). ``CFSTREAM_*`` environment variables override the file.
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type

import yaml
from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .api.config import APIConfig, DEFAULT_BASE_URL
from .exceptions import ConfigError
from .logging import get_logger

logger = get_logger('cfstream.settings')

CONFIG_PATH_ENV = 'CFSTREAM_CONFIG'

ENV_OVERRIDES = {
    'account_id': 'CFSTREAM_ACCOUNT_ID',
    'api_token': 'CFSTREAM_API_TOKEN',
    'api_url': 'CFSTREAM_API_URL',
    'default_output': 'CFSTREAM_OUTPUT',
}

OUTPUT_FORMATS = ('text', 'json')


def config_home() -> Path:
    """``$XDG_CONFIG_HOME``, falling back to ``~/.config``."""
    xdg = os.environ.get('XDG_CONFIG_HOME')
    return Path(xdg).expanduser() if xdg else Path.home() / '.config'


def default_config_path() -> Path:
    """Resolve the config file location."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return config_home() / 'cfstream' / 'config.yaml'


class ConfigFileSource(YamlConfigSettingsSource):
    """YAML config file source that insists on a mapping at the top level."""

    def _read_file(self, file_path: Path) -> Dict[str, Any]:
        data = super()._read_file(file_path)
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {file_path} must contain a mapping")
        logger.debug(f"Loaded settings from {file_path}")
        return data


class StreamSettings(BaseSettings):
    """
    User settings for the CLI and StreamClient.

    Attributes:
        account_id: Account identifier
        api_token: API token with Stream permissions
        api_url: API base URL
        default_output: Output format for CLI commands ('text' or 'json')
    """

    model_config = SettingsConfigDict(
        env_prefix='CFSTREAM_',
        case_sensitive=False,
        extra='ignore',
        env_ignore_empty=True,
    )

    account_id: str = ''
    api_token: str = ''
    api_url: str = DEFAULT_BASE_URL
    default_output: str = Field(
        default='text',
        validation_alias=AliasChoices('default_output', 'CFSTREAM_OUTPUT', 'CFSTREAM_DEFAULT_OUTPUT'),
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Keyword arguments, then environment, then the config file
        return (
            init_settings,
            env_settings,
            ConfigFileSource(settings_cls, yaml_file=default_config_path(), yaml_file_encoding='utf-8'),
        )

    @classmethod
    def load(cls) -> 'StreamSettings':
        """
        Load settings from the config file and environment.

        A missing file is not an error; defaults are used.

        Raises:
            ConfigError: If the file cannot be parsed or holds invalid values
        """
        try:
            return cls()
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {default_config_path()}: {e}") from e
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e

    def check(self) -> 'StreamSettings':
        """
        Check required fields and normalize values.

        Raises:
            ConfigError: If a required field is missing or a value is invalid
        """
        if not self.account_id.strip():
            raise ConfigError(
                f"account_id is required (set {ENV_OVERRIDES['account_id']} or run 'cfstream config set')"
            )
        if not self.api_token.strip():
            raise ConfigError(
                f"api_token is required (set {ENV_OVERRIDES['api_token']} or run 'cfstream config set')"
            )

        output = self.default_output.strip().lower() or 'text'
        if output not in OUTPUT_FORMATS:
            raise ConfigError(
                f"default_output must be one of: {', '.join(OUTPUT_FORMATS)} (got: {self.default_output})"
            )
        self.default_output = output
        return self

    def save(self, path: Optional[Path] = None) -> Path:
        """Write settings as YAML (owner-only permissions)."""
        path = path or default_config_path()
        path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)
        os.chmod(path, 0o600)
        logger.debug(f"Saved settings to {path}")
        return path

    def to_api_config(self, **kwargs) -> APIConfig:
        """Build the API client configuration."""
        return APIConfig(
            account_id=self.account_id,
            api_token=self.api_token,
            base_url=self.api_url,
            **kwargs
        )
