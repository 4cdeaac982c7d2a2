"""
Test suite for configuration and the command-line interface.
"""

import json

import pytest

from eslsync.cli import build_config, create_parser, parse_store_mappings, push_file
from eslsync.config import DEFAULT_SINK_BASE_URL, SyncConfig, get_config, set_config
from eslsync.core.errors import ConfigurationError


# ============================================================================
# Test Settings
# ============================================================================

class TestSyncConfig:
    """Tests for SyncConfig defaults and environment loading."""

    def test_defaults(self):
        config = SyncConfig()

        assert config.server_port == 8080
        assert config.webhook_path == "/catapult"
        assert config.sink_base_url == DEFAULT_SINK_BASE_URL
        assert config.batch_max_items == 999
        assert config.batch_max_bytes == 10 * 1024 * 1024
        assert config.max_attempts == 3
        assert config.retry_base_delay_seconds == 1.0
        assert config.max_concurrent_requests == 10
        assert config.shutdown_grace_seconds == 5.0
        assert config.store_mappings == {}

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("ESL_SINK_API_KEY", "secret")
        monkeypatch.setenv("ESL_SERVER_PORT", "9090")
        monkeypatch.setenv("ESL_STORE_MAPPINGS", json.dumps({"RS1": "acme.main"}))

        config = SyncConfig()

        assert config.sink_api_key == "secret"
        assert config.server_port == 9090
        assert config.store_mappings == {"RS1": "acme.main"}

    def test_blank_mappings_are_dropped(self):
        config = SyncConfig(store_mappings={" RS1 ": " acme.main ", "RS2": "", "RS3": "   "})
        assert config.store_mappings == {"RS1": "acme.main"}

    def test_trailing_slash_stripped(self):
        assert SyncConfig(sink_base_url="https://esl.example.test/v1/").sink_base_url == (
            "https://esl.example.test/v1"
        )

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_require_api_key(self, key):
        with pytest.raises(ConfigurationError, match="ESL_SINK_API_KEY"):
            SyncConfig(sink_api_key=key).require_api_key()

    def test_global_config(self, test_config):
        set_config(test_config)
        try:
            assert get_config() is test_config
        finally:
            set_config(None)


# ============================================================================
# Test CLI
# ============================================================================

class TestCli:
    """Tests for argument parsing and config overrides."""

    def test_parse_store_mappings(self):
        assert parse_store_mappings(["RS1=acme.main", " RS2 = acme.harbor "]) == {
            "RS1": "acme.main",
            "RS2": "acme.harbor",
        }
        assert parse_store_mappings(None) == {}

    @pytest.mark.parametrize("value", ["RS1", "=acme.main"])
    def test_parse_store_mappings_rejects_malformed(self, value):
        with pytest.raises(ConfigurationError):
            parse_store_mappings([value])

    def test_overrides(self):
        args = create_parser().parse_args([
            "serve",
            "--port", "9000",
            "--api-key", "k",
            "--store", "RS1=acme.main",
            "--store", "RS2=",
        ])
        config = build_config(args)

        assert config.server_port == 9000
        assert config.sink_api_key == "k"
        assert config.store_mappings == {"RS1": "acme.main"}
        assert config.log_json is False

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "sync.env"
        env_file.write_text("ESL_SINK_API_KEY=from-file\nESL_WEBHOOK_PATH=/items\n")

        args = create_parser().parse_args(["stores", "--env-file", str(env_file)])
        config = build_config(args)

        assert config.sink_api_key == "from-file"
        assert config.webhook_path == "/items"

    def test_invalid_value(self):
        args = create_parser().parse_args(["serve", "--port", "70000"])
        with pytest.raises(ConfigurationError):
            build_config(args)


class TestPushFile:
    """Tests for one-shot file delivery."""

    @pytest.mark.asyncio
    async def test_invalid_file(self, tmp_path, test_config, capsys):
        path = tmp_path / "items.json"
        path.write_text("{broken")

        assert await push_file(test_config, path) == 1
        assert "Invalid item file" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_unmapped_items(self, tmp_path, test_config, capsys):
        path = tmp_path / "items.json"
        path.write_text(json.dumps([{"itemId": "1", "stores": [{"storeNumber": "RS9"}]}]))

        assert await push_file(test_config, path) == 0
        assert "1 items skipped" in capsys.readouterr().out
