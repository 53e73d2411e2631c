"""
Unit tests for storage configuration loading.

Test Coverage:
1. Defaults
2. YAML file with ${VAR} substitution
3. SW_STORAGE_ES_* environment overrides
4. Validation failures surfacing as ConfigurationError
"""

import pytest

from esinstaller.config import DEFAULT_OAP_ANALYZER, StorageConfig, load_config
from esinstaller.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in StorageConfig.model_fields:
        monkeypatch.delenv("SW_STORAGE_ES_" + name.upper(), raising=False)


class TestStorageConfig:
    def test_defaults(self):
        config = load_config()
        assert config.hosts == ["http://localhost:9200"]
        assert config.logic_sharding is False
        assert config.index_shards_number == 1
        assert config.super_dataset_index_shards_factor == 5
        assert config.flush_interval == 15
        assert config.day_step == 1
        assert config.advanced == ""
        assert config.oap_analyzer == DEFAULT_OAP_ANALYZER

    def test_yaml_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ES_PASSWORD", "changeme")
        path = tmp_path / "storage.yaml"
        path.write_text(
            "hosts:\n"
            "  - http://es-1:9200\n"
            "  - http://es-2:9200\n"
            "username: elastic\n"
            "password: ${ES_PASSWORD}\n"
            "index_shards_number: 3\n"
            "logic_sharding: true\n"
        )
        config = load_config(str(path))
        assert config.hosts == ["http://es-1:9200", "http://es-2:9200"]
        assert config.password == "changeme"
        assert config.index_shards_number == 3
        assert config.logic_sharding is True

    def test_unresolved_variable_is_kept(self, tmp_path):
        path = tmp_path / "storage.yaml"
        path.write_text("namespace: ${ESINSTALLER_UNSET_NAMESPACE}\n")
        assert load_config(str(path)).namespace == "${ESINSTALLER_UNSET_NAMESPACE}"

    def test_embedded_variables(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ES_HOST", "es-prod")
        monkeypatch.setenv("ES_PORT", "9201")
        path = tmp_path / "storage.yaml"
        path.write_text(
            "hosts:\n"
            "  - http://${ES_HOST}:${ES_PORT}\n"
            "namespace: sw_${ESINSTALLER_UNSET_NAMESPACE}\n"
        )
        config = load_config(str(path))
        assert config.hosts == ["http://es-prod:9201"]
        assert config.namespace == "sw_${ESINSTALLER_UNSET_NAMESPACE}"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "storage.yaml"
        path.write_text("index_shards_number: 3\nnamespace: dev\n")
        monkeypatch.setenv("SW_STORAGE_ES_INDEX_SHARDS_NUMBER", "6")
        monkeypatch.setenv("SW_STORAGE_ES_HOSTS", "http://a:9200, http://b:9200,")
        monkeypatch.setenv("SW_STORAGE_ES_LOGIC_SHARDING", "true")
        config = load_config(str(path))
        assert config.index_shards_number == 6
        assert config.hosts == ["http://a:9200", "http://b:9200"]
        assert config.logic_sharding is True
        assert config.namespace == "dev"

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("SW_STORAGE_ES_DAY_STEP", "0")
        with pytest.raises(ConfigurationError, match="Invalid storage configuration"):
            load_config()

    def test_file_must_be_a_mapping(self, tmp_path):
        path = tmp_path / "storage.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))
