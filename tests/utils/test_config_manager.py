"""Tests for ConfigManager class."""

from pathlib import Path

import pytest

from dataset_tool.exceptions import InvalidSpecificationError
from dataset_tool.utils.config_manager import ConfigManager


class TestConfigManagerLoad:
    """Tests for ConfigManager.load() method."""

    def test_default_path(self, monkeypatch):
        """Test the default path is expanded."""
        monkeypatch.delenv("DATASET_TOOL_CONFIG", raising=False)
        manager = ConfigManager()
        assert manager.config_path == Path("~/.config/dataset-tool/config.toml").expanduser()

    def test_default_path_from_environment(self, monkeypatch, tmp_path):
        """Test DATASET_TOOL_CONFIG replaces the default path but not an explicit one."""
        monkeypatch.setenv("DATASET_TOOL_CONFIG", str(tmp_path / "env.toml"))
        assert ConfigManager().config_path == tmp_path / "env.toml"
        assert ConfigManager(str(tmp_path / "cli.toml")).config_path == tmp_path / "cli.toml"

    def test_load_file_not_found(self, tmp_path):
        """Test load() raises FileNotFoundError when file doesn't exist."""
        config_path = tmp_path / "nonexistent.toml"
        with pytest.raises(FileNotFoundError) as exc_info:
            ConfigManager(str(config_path)).load()
        assert str(config_path) in str(exc_info.value)

    def test_load_invalid_toml(self, tmp_path):
        """Test load() reports TOML syntax errors as ValueError."""
        config_path = tmp_path / "config.toml"
        config_path.write_text("[api\nbase_url = ")
        with pytest.raises(ValueError, match="Invalid TOML"):
            ConfigManager(str(config_path)).load()

    def test_load_cached(self, temp_config_file):
        """Test load() reads the file once."""
        manager = ConfigManager(temp_config_file)
        first = manager.load()
        Path(temp_config_file).write_text("")
        assert manager.load() is first

    def test_reload(self, temp_config_file):
        """Test reload() rereads the file."""
        manager = ConfigManager(temp_config_file)
        manager.load()
        Path(temp_config_file).write_text('[api]\nproject_id = "other"\n')
        manager.reload()
        assert manager.get("api.project_id") == "other"


class TestConfigManagerAccess:
    """Tests for key and section access."""

    def test_get_nested(self, temp_config_file):
        """Test dotted keys reach nested values."""
        manager = ConfigManager(temp_config_file)
        assert manager.get("api.project_id") == "proj"
        assert manager.get("archiver.shards") == 3
        assert manager.get("api.missing", "fallback") == "fallback"
        assert manager.get("api.project_id.deeper", "fallback") == "fallback"

    def test_get_section(self, temp_config_file):
        """Test whole sections are returned as dictionaries."""
        manager = ConfigManager(temp_config_file)
        assert manager.get_section("transfer") == {"concurrency": 2, "upload_ttl": 120}
        assert manager.get_section("missing") == {}

    def test_has_key(self, temp_config_file, tmp_path):
        """Test has_key() for present, absent and unreadable configurations."""
        manager = ConfigManager(temp_config_file)
        assert manager.has_key("storage.backend")
        assert not manager.has_key("storage.endpoint")
        assert not ConfigManager(str(tmp_path / "missing.toml")).has_key("api")


class TestSettings:
    """Tests for ConfigManager.settings()."""

    def test_settings(self, temp_config_file):
        """Test the complete configuration validates into Settings."""
        settings = ConfigManager(temp_config_file).settings()

        assert settings.api.base_url == "https://datasets.example.com"
        assert settings.auth.token == "static-token"
        assert settings.storage.backend == "local"
        assert settings.archiver.type == "sharded-tar"
        assert settings.archiver.shards == 3
        assert settings.transfer.concurrency == 2
        assert settings.transfer.upload_ttl == 120

    def test_settings_defaults(self, tmp_path):
        """Test optional sections fall back to defaults."""
        config_path = tmp_path / "config.toml"
        config_path.write_text(
            '[api]\nbase_url = "https://api.example.com"\nproject_id = "p"\n'
            '[storage]\nendpoint = "https://objects.example.com"\n'
        )

        settings = ConfigManager(str(config_path)).settings()

        assert settings.archiver.type == "tar"
        assert settings.archiver.symlinks == "preserve"
        assert settings.transfer.concurrency == 4
        assert settings.auth.token_env == "DATASET_TOOL_TOKEN"

    @pytest.mark.parametrize(
        "content",
        [
            '[storage]\nbackend = "local"\nroot_dir = "/tmp"\n',
            '[api]\nbase_url = "ftp://x"\nproject_id = "p"\n[storage]\nbackend = "local"\nroot_dir = "/tmp"\n',
            '[api]\nbase_url = "https://x"\nproject_id = "p"\n[storage]\nbackend = "http"\n',
            '[api]\nbase_url = "https://x"\nproject_id = "p"\nunknown = 1\n[storage]\nendpoint = "https://o"\n',
            '[api]\nbase_url = "https://x"\nproject_id = "p"\n[storage]\nendpoint = "https://o"\n'
            '[auth]\nclient_id = "only-id"\n',
        ],
    )
    def test_invalid_settings(self, tmp_path, content):
        """Test invalid configurations are rejected with the file name."""
        config_path = tmp_path / "config.toml"
        config_path.write_text(content)
        with pytest.raises(InvalidSpecificationError, match="config.toml"):
            ConfigManager(str(config_path)).settings()

    def test_relative_paths_resolved(self, tmp_path):
        """Test relative paths are taken relative to the configuration file."""
        config_dir = tmp_path / "conf"
        config_dir.mkdir()
        config_path = config_dir / "config.toml"
        config_path.write_text(
            '[api]\nbase_url = "https://api.example.com"\nproject_id = "p"\n'
            '[auth]\ntoken_file = "token.json"\n'
            '[storage]\nbackend = "local"\nroot_dir = "store"\n'
        )
        manager = ConfigManager(str(config_path))

        settings = manager.settings()

        assert settings.storage.root_dir == str(config_dir / "store")
        assert settings.auth.token_file == str(config_dir / "token.json")
        assert manager.get("storage.root_dir") == "store"

    def test_absolute_paths_kept(self, temp_config_file, tmp_path):
        """Test absolute paths are used unchanged."""
        assert ConfigManager(temp_config_file).settings().storage.root_dir == str(tmp_path / "store")
