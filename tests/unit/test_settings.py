"""Tests for settings loading and persistence."""
import os
import stat

import pytest
import yaml

from cfstream.core.api import APIConfig
from cfstream.core.exceptions import ConfigError
from cfstream.core.settings import StreamSettings, default_config_path


class TestDefaultConfigPath:
    """Test suite for default_config_path."""

    def test_env_override(self, tmp_path, monkeypatch):
        """Test CFSTREAM_CONFIG wins."""
        monkeypatch.setenv('CFSTREAM_CONFIG', str(tmp_path / 'c.yaml'))

        assert default_config_path() == tmp_path / 'c.yaml'

    def test_xdg_config_home(self, isolated_settings):
        """Test the file lives under XDG_CONFIG_HOME."""
        assert default_config_path() == isolated_settings / 'cfstream' / 'config.yaml'

    def test_home_fallback(self, monkeypatch):
        """Test ~/.config is used without XDG_CONFIG_HOME."""
        monkeypatch.delenv('XDG_CONFIG_HOME', raising=False)

        assert default_config_path().parts[-3:] == ('.config', 'cfstream', 'config.yaml')


class TestStreamSettings:
    """Test suite for StreamSettings."""

    @pytest.fixture
    def config_file(self, isolated_settings):
        path = isolated_settings / 'cfstream' / 'config.yaml'
        path.parent.mkdir(parents=True)
        path.write_text(
            "account_id: file-account\n"
            "api_token: file-token\n"
            "default_output: json\n"
        )
        return path

    def test_missing_file_uses_defaults(self):
        """Test absent file is not an error."""
        settings = StreamSettings.load()

        assert settings.account_id == ''
        assert settings.api_url == APIConfig.base_url
        assert settings.default_output == 'text'

    def test_load_from_xdg_file(self, config_file):
        """Test values come from the file under XDG_CONFIG_HOME."""
        settings = StreamSettings.load()

        assert settings.account_id == 'file-account'
        assert settings.api_token == 'file-token'
        assert settings.default_output == 'json'

    def test_config_env_points_elsewhere(self, tmp_path, monkeypatch):
        """Test CFSTREAM_CONFIG selects another file."""
        path = tmp_path / 'other.yaml'
        path.write_text("account_id: acct\n")
        monkeypatch.setenv('CFSTREAM_CONFIG', str(path))

        assert StreamSettings.load().account_id == 'acct'

    def test_env_overrides_file(self, config_file, monkeypatch):
        """Test environment variables beat the file."""
        monkeypatch.setenv('CFSTREAM_ACCOUNT_ID', 'env-account')
        monkeypatch.setenv('CFSTREAM_API_URL', 'https://api.test/v4/')
        monkeypatch.setenv('CFSTREAM_OUTPUT', 'text')

        settings = StreamSettings.load()

        assert settings.account_id == 'env-account'
        assert settings.api_token == 'file-token'
        assert settings.api_url == 'https://api.test/v4/'
        assert settings.default_output == 'text'

    def test_empty_env_does_not_override(self, config_file, monkeypatch):
        """Test an empty variable leaves the file value."""
        monkeypatch.setenv('CFSTREAM_ACCOUNT_ID', '')

        assert StreamSettings.load().account_id == 'file-account'

    def test_unknown_keys_ignored(self, isolated_settings):
        """Test extra keys in the file are skipped."""
        path = isolated_settings / 'cfstream' / 'config.yaml'
        path.parent.mkdir(parents=True)
        path.write_text("account_id: a\ncolour: blue\n")

        assert StreamSettings.load().account_id == 'a'

    def test_empty_file(self, isolated_settings):
        """Test an empty file gives defaults."""
        path = isolated_settings / 'cfstream' / 'config.yaml'
        path.parent.mkdir(parents=True)
        path.write_text("")

        assert StreamSettings.load().default_output == 'text'

    def test_invalid_yaml(self, isolated_settings):
        """Test malformed file raises ConfigError."""
        path = isolated_settings / 'cfstream' / 'config.yaml'
        path.parent.mkdir(parents=True)
        path.write_text("account_id: [unclosed\n")

        with pytest.raises(ConfigError):
            StreamSettings.load()

    def test_non_mapping_yaml(self, isolated_settings):
        """Test a top-level list raises ConfigError."""
        path = isolated_settings / 'cfstream' / 'config.yaml'
        path.parent.mkdir(parents=True)
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            StreamSettings.load()

    def test_check_requires_account(self):
        """Test missing account ID."""
        with pytest.raises(ConfigError, match="account_id"):
            StreamSettings(api_token='t').check()

    def test_check_requires_token(self):
        """Test missing token."""
        with pytest.raises(ConfigError, match="api_token"):
            StreamSettings(account_id='a').check()

    def test_check_output_format(self):
        """Test unknown output format."""
        with pytest.raises(ConfigError, match="default_output"):
            StreamSettings(account_id='a', api_token='t', default_output='yaml').check()

    def test_check_normalizes_output(self):
        """Test output format is normalized."""
        settings = StreamSettings(account_id='a', api_token='t', default_output=' JSON ').check()

        assert settings.default_output == 'json'

    def test_save_writes_yaml(self, isolated_settings):
        """Test save writes a private YAML file that load reads back."""
        path = StreamSettings(account_id='a', api_token='t').save()

        assert path == isolated_settings / 'cfstream' / 'config.yaml'
        data = yaml.safe_load(path.read_text())
        assert data['account_id'] == 'a'
        assert data['default_output'] == 'text'
        assert StreamSettings.load().api_token == 't'
        if os.name == 'posix':
            assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_save_to_explicit_path(self, tmp_path):
        """Test save creates missing parent directories."""
        path = tmp_path / 'nested' / 'config.yaml'
        StreamSettings(account_id='a', api_token='t').save(path)

        assert yaml.safe_load(path.read_text())['account_id'] == 'a'

    def test_to_api_config(self):
        """Test conversion to APIConfig."""
        config = StreamSettings(account_id='a', api_token='t', api_url='https://api.test/v4').to_api_config()

        assert config.stream_url == 'https://api.test/v4/accounts/a/stream'
        assert config.auth_headers() == {'Authorization': 'Bearer t'}
