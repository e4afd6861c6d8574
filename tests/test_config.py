"""Tests for configuration loading."""

import json

import pytest

from marker_client.config import Config


class TestConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MARKERS_API_KEY", raising=False)
        monkeypatch.delenv("MARKERS_BASE_URL", raising=False)

        config = Config()

        assert config.api.api_key is None
        assert config.api.base_url == "https://api.gamebeast.gg"
        assert config.markers.batch_size == 10
        assert config.markers.flush_interval_seconds == 10.0
        assert config.markers.max_buffer_size == 10000
        assert config.context.server_id == "unity-0000"
        assert config.transport.type == "http"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("MARKERS_API_KEY", "from-env")
        monkeypatch.setenv("MARKERS_BASE_URL", "http://localhost:8060")
        monkeypatch.setenv("MARKERS_TIMEOUT", "2.5")

        config = Config()

        assert config.api.api_key == "from-env"
        assert config.api.base_url == "http://localhost:8060"
        assert config.api.timeout == 2.5

    def test_from_dict(self):
        config = Config.from_dict({
            "markers": {"batch_size": 25, "flush_interval_seconds": 2},
            "context": {"sdk_platform": "unity", "place_id": 99},
            "transport": {"type": "file", "options": {"path": "m.jsonl"}},
        })

        assert config.markers.batch_size == 25
        assert config.markers.flush_interval_seconds == 2
        assert config.context.sdk_platform == "unity"
        assert config.context.place_id == 99
        assert config.context.origin == "sdk"
        assert config.transport.options == {"path": "m.jsonl"}

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            Config.from_dict({"markers": {"batch_sise": 5}})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "markers.yaml"
        path.write_text(
            "api:\n"
            "  api_key: yaml-key\n"
            "markers:\n"
            "  batch_size: 50\n"
            "  max_buffer_size: 0\n"
        )

        config = Config.from_yaml(str(path))

        assert config.api.api_key == "yaml-key"
        assert config.markers.batch_size == 50
        assert config.markers.max_buffer_size == 0

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Config.from_yaml(str(path)).markers.batch_size == 10

    def test_from_json(self, tmp_path):
        path = tmp_path / "markers.json"
        path.write_text(json.dumps({"context": {"server_id": "srv-2"}}))
        assert Config.from_json(str(path)).context.server_id == "srv-2"
