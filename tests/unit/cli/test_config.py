"""Unit tests for cli.config module."""

import pytest
import yaml

from src.cli.config import ConfigLoader
from src.cli.errors import ConfigNotFoundError
from src.cli.models import SyncConfig
from src.content_sync.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep real .env files and CONTENT_SYNC_* variables out of the tests."""
    monkeypatch.setattr("src.cli.config.load_dotenv", lambda: None)
    for name in [
        "CONTENT_SYNC_DIRECTORY",
        "CONTENT_SYNC_ACCOUNT_ID",
        "CONTENT_SYNC_PROJECT_ID",
        "CONTENT_SYNC_DATABASE",
        "CONTENT_SYNC_DEBOUNCE_MS",
        "CONTENT_SYNC_MAX_WORKERS",
        "CONTENT_SYNC_CONTENT_REPO",
    ]:
        monkeypatch.delenv(name, raising=False)


class TestConfigLoaderLoad:
    """Test cases for ConfigLoader.load()."""

    def test_load_all_fields(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "directory: ./content\n"
            "account_id: acme\n"
            "project_id: 42\n"
            "database: data/content.db\n"
            "debounce_ms: 250\n"
            "max_workers: 2\n"
            "content_repo: https://github.com/acme/site\n"
        )

        result = ConfigLoader.load(str(config_file))

        assert result == SyncConfig(
            directory="./content",
            account_id="acme",
            project_id="42",
            database="data/content.db",
            debounce_ms=250,
            max_workers=2,
            content_repo="https://github.com/acme/site",
        )

    def test_defaults_for_missing_keys(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("directory: ./content\n")

        result = ConfigLoader.load(str(config_file))

        assert result.debounce_ms == 1000
        assert result.max_workers == 8
        assert result.database == ".content-sync/content.db"
        assert result.account_id is None

    def test_empty_file_gives_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert ConfigLoader.load(str(config_file)) == SyncConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            ConfigLoader.load(str(tmp_path / "nope.yaml"))

    def test_load_or_default_missing_file(self, tmp_path):
        assert ConfigLoader.load_or_default(str(tmp_path / "nope.yaml")) == SyncConfig()

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("directory: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML syntax"):
            ConfigLoader.load(str(config_file))

    def test_not_a_mapping(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="dictionary"):
            ConfigLoader.load(str(config_file))

    def test_unknown_key(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("directroy: ./content\n")

        with pytest.raises(ConfigError, match="directroy"):
            ConfigLoader.load(str(config_file))

    @pytest.mark.parametrize("text,field", [
        ("max_workers: many\n", "max_workers"),
        ("max_workers: 0\n", "max_workers"),
        ("debounce_ms: -5\n", "debounce_ms"),
        ("debounce_ms: true\n", "debounce_ms"),
        ("directory: [a, b]\n", "directory"),
    ])
    def test_invalid_values(self, tmp_path, text, field):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(text)

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert exc_info.value.config_field == field


class TestConfigLoaderSave:
    """Test cases for ConfigLoader.save()."""

    def test_save_creates_directory_and_round_trips(self, tmp_path):
        config_path = tmp_path / ".content-sync" / "config.yaml"
        config = SyncConfig(directory="./content", account_id="acme", project_id="site", debounce_ms=300)

        ConfigLoader.save(str(config_path), config)

        assert config_path.exists()
        assert ConfigLoader.load(str(config_path)) == config

    def test_none_values_omitted(self, tmp_path):
        config_path = tmp_path / "config.yaml"

        ConfigLoader.save(str(config_path), SyncConfig(directory="./content"))

        saved = yaml.safe_load(config_path.read_text())
        assert "account_id" not in saved
        assert saved["directory"] == "./content"


class TestConfigLoaderApplyEnv:
    """Test cases for ConfigLoader.apply_env()."""

    def test_env_overrides_file_values(self, monkeypatch):
        monkeypatch.setenv("CONTENT_SYNC_PROJECT_ID", "from-env")
        monkeypatch.setenv("CONTENT_SYNC_DEBOUNCE_MS", "50")

        result = ConfigLoader.apply_env(SyncConfig(account_id="acme", project_id="from-file"))

        assert result.account_id == "acme"
        assert result.project_id == "from-env"
        assert result.debounce_ms == 50

    def test_no_env_returns_config_unchanged(self):
        config = SyncConfig(directory="./content")

        assert ConfigLoader.apply_env(config) is config

    def test_invalid_env_number(self, monkeypatch):
        monkeypatch.setenv("CONTENT_SYNC_MAX_WORKERS", "lots")

        with pytest.raises(ConfigError):
            ConfigLoader.apply_env(SyncConfig())
