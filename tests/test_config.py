"""Tests for configuration loading."""

import json

from devmem.config import CloudConfig, DevMemConfig, default_config_path, load_config


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.json")

        assert config.cloud.enabled is False
        assert config.log_level == "WARNING"
        assert config.machine_id

    def test_default_db_path_under_home(self, isolated_home):
        assert DevMemConfig().resolved_db_path() == isolated_home / "memory.db"

    def test_default_config_path(self, isolated_home, monkeypatch, tmp_path):
        assert default_config_path() == isolated_home / "config.json"
        monkeypatch.setenv("DEVMEM_CONFIG", str(tmp_path / "elsewhere.json"))
        assert default_config_path() == tmp_path / "elsewhere.json"


class TestFileLoading:
    def test_values_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "db_path": str(tmp_path / "custom.db"),
                    "machine_id": "laptop",
                    "cloud": {"enabled": True, "project_id": "abc", "collection_prefix": "team"},
                }
            )
        )

        config = load_config(path)

        assert config.resolved_db_path() == tmp_path / "custom.db"
        assert config.machine_id == "laptop"
        assert config.cloud.enabled is True
        assert config.cloud.resolved_url() == "https://abc.supabase.co"
        assert config.cloud.collection_prefix == "team"

    def test_config_env_var_selects_file(self, tmp_path, monkeypatch):
        path = tmp_path / "from-env.json"
        path.write_text(json.dumps({"log_level": "DEBUG"}))
        monkeypatch.setenv("DEVMEM_CONFIG", str(path))

        assert load_config().log_level == "DEBUG"

    def test_invalid_json_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        config = load_config(path)

        assert config.cloud.enabled is False
        assert any("Ignoring invalid config" in r.message for r in caplog.records)

    def test_wrong_types_give_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"cloud": {"timeout": "soon"}}))
        assert load_config(path).cloud.timeout == 10.0

    def test_non_object_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[]")
        assert load_config(path).db_path is None

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"legacy_option": 1, "log_level": "INFO"}))
        assert load_config(path).log_level == "INFO"


class TestEnvironment:
    def test_cloud_key_from_env(self, monkeypatch):
        monkeypatch.setenv("DEVMEM_CLOUD_KEY", "env-secret")
        assert DevMemConfig().cloud_key == "env-secret"

    def test_db_path_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DEVMEM_DB_PATH", str(tmp_path / "env.db"))
        assert load_config(tmp_path / "absent.json").resolved_db_path() == tmp_path / "env.db"


class TestCloudKey:
    def test_raw_key_file(self, tmp_path):
        key_file = tmp_path / "key.txt"
        key_file.write_text("  raw-key\n")
        assert CloudConfig(key_file=str(key_file)).load_key() == "raw-key"

    def test_json_key_file(self, tmp_path):
        key_file = tmp_path / "key.json"
        key_file.write_text(json.dumps({"key": "json-key"}))
        assert CloudConfig(key_file=str(key_file)).load_key() == "json-key"

    def test_missing_key_file(self, tmp_path):
        assert CloudConfig(key_file=str(tmp_path / "nope")).load_key() is None

    def test_no_key_file(self):
        assert CloudConfig().load_key() is None

    def test_url_preferred_over_project_id(self):
        config = CloudConfig(url="https://self-hosted.example/", project_id="abc")
        assert config.resolved_url() == "https://self-hosted.example"
