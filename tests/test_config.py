"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from newsingest.config import Config, ConfigModel, load_config, save_config
from newsingest.config.loader import CONFIG_ENV, default_config_path
from newsingest.errors import ConfigurationError

CONFIG_YAML = """
postgres:
  host: db.internal
  password_env: TEST_DB_PASSWORD
mediastack:
  api_key_env: TEST_MEDIASTACK_KEY
  retry:
    times: 5
    sleep_ms: 500
pipeline:
  max_workers: 4
profiles:
  tech:
    description: Technology news
    params:
      categories: technology
      limit: 25
logging:
  level: DEBUG
  format: text
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


class TestLoadConfig:
    """Reading YAML."""

    def test_loads_sections(self, config_file):
        config = load_config(config_file)

        assert config.postgres.host == "db.internal"
        assert config.postgres.port == 5432
        assert config.mediastack.retry.times == 5
        assert config.mediastack.retry.sleep_ms == 500
        assert config.mediastack.retry.exponential_backoff is True
        assert config.pipeline.max_workers == 4
        assert config.profiles["tech"].params == {"categories": "technology", "limit": 25}
        assert config.logging.format == "text"

    def test_defaults_for_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        config = load_config(path)

        assert config.mediastack.api_url == "http://api.mediastack.com/v1/news"
        assert config.mediastack.default_params["sort"] == "published_desc"
        assert config.mediastack.retry.times == 3
        assert config.mediastack.retry.sleep_ms == 1000
        assert config.pipeline.partial_failure_threshold == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("postgres: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("pipeline:\n  max_workers: 0\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        original = ConfigModel(profiles={"daily": {"params": {"limit": 10}}})

        save_config(original, path)

        assert load_config(path) == original


class TestConfigModels:
    """Validation rules."""

    def test_access_key_not_allowed_in_default_params(self):
        with pytest.raises(ValidationError):
            ConfigModel(mediastack={"default_params": {"access_key": "x"}})

    def test_unknown_log_format(self):
        with pytest.raises(ValidationError):
            ConfigModel(logging={"format": "json"})

    def test_models_are_frozen(self):
        config = ConfigModel()

        with pytest.raises(ValidationError):
            config.pipeline.max_workers = 8


class TestConfigManager:
    """Secrets and paths."""

    def test_api_key_from_environment(self, config_file, monkeypatch):
        monkeypatch.setenv("TEST_MEDIASTACK_KEY", "env-key")

        assert Config(config_file).get_api_key() == "env-key"

    def test_api_key_from_file(self, monkeypatch):
        monkeypatch.delenv("MEDIASTACK_API_KEY", raising=False)
        config = Config(model=ConfigModel(mediastack={"api_key": "file-key"}))

        assert config.get_api_key() == "file-key"

    def test_missing_api_key(self, config_file, monkeypatch):
        monkeypatch.delenv("TEST_MEDIASTACK_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            Config(config_file).get_api_key()

    def test_db_password_from_environment(self, config_file, monkeypatch):
        monkeypatch.setenv("TEST_DB_PASSWORD", "pw")

        db_config = Config(config_file).get_db_config()

        assert db_config["password"] == "pw"
        assert db_config["host"] == "db.internal"

    def test_default_path_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "custom.yaml"))

        assert default_config_path() == tmp_path / "custom.yaml"
