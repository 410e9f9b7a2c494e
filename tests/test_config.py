"""
Tests for configuration loading.
"""

import json
from pathlib import Path

import pytest
import yaml

from mcp_repl.core.config import ConfigManager, ExecutionConfig, GatewayConfig, SearchConfig
from mcp_repl.core.exceptions import ConfigurationError
from mcp_repl.runtimes import NodeRuntime


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for name in ("MCP_REPL_NODE_BINARY", "MCP_REPL_DENO_BINARY", "MCP_REPL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestGatewayConfig:
    """Tests for GatewayConfig."""

    def test_defaults(self, tmp_path):
        config = GatewayConfig.from_dict({}, working_dir=tmp_path)

        assert config.working_dir == tmp_path.resolve()
        assert config.execution.node_binary == "node"
        assert config.execution.node_module_args == ["--input-type=module"]
        assert config.execution.deno_args == ["run", "--allow-all", "-"]
        assert config.execution.default_timeout_ms == 120000
        assert config.search.default_extensions == ["js", "ts"]
        assert config.search.default_ignores == ["node_modules"]
        assert config.search.default_top_k == 8
        assert config.server.name == "direct-node-executor"
        assert config.execution.temp_dirname == "temp"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "mcp_repl.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "execution": {"node_binary": "/opt/node/bin/node", "default_timeout_ms": 5000},
                    "search": {"default_top_k": 3},
                    "server": {"log_level": "DEBUG"},
                }
            )
        )

        config = GatewayConfig.load_from_file(path, working_dir=tmp_path)

        assert config.execution.node_binary == "/opt/node/bin/node"
        assert config.execution.default_timeout_ms == 5000
        assert config.execution.deno_binary == "deno"
        assert config.search.default_top_k == 3
        assert config.server.log_level == "DEBUG"

    def test_load_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"execution": {"temp_dirname": "scratch"}}))

        config = GatewayConfig.load_from_file(path, working_dir=tmp_path)
        assert config.execution.temp_dirname == "scratch"
        assert NodeRuntime.from_config(config.working_dir, config.execution).temp_dir == (
            tmp_path.resolve() / "scratch"
        )

    def test_unknown_keys_are_ignored(self, tmp_path):
        config = GatewayConfig.from_dict(
            {"execution": {"node_binary": "nodejs", "colour": "blue"}, "extra": 1},
            working_dir=tmp_path,
        )
        assert config.execution.node_binary == "nodejs"

    def test_section_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError):
            GatewayConfig.from_dict({"execution": ["node"]}, working_dir=tmp_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            GatewayConfig.load_from_file(tmp_path / "missing.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("execution: [unclosed\n")
        with pytest.raises(ConfigurationError):
            GatewayConfig.load_from_file(path, working_dir=tmp_path)

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MCP_REPL_NODE_BINARY", "/usr/local/bin/node20")
        monkeypatch.setenv("MCP_REPL_DENO_BINARY", "/usr/local/bin/deno")
        monkeypatch.setenv("MCP_REPL_LOG_LEVEL", "INFO")

        config = GatewayConfig.from_dict(
            {"execution": {"node_binary": "node"}}, working_dir=tmp_path
        )

        assert config.execution.node_binary == "/usr/local/bin/node20"
        assert config.execution.deno_binary == "/usr/local/bin/deno"
        assert config.server.log_level == "INFO"

    def test_to_dict(self, tmp_path):
        config = GatewayConfig(
            working_dir=tmp_path,
            execution=ExecutionConfig(node_binary="nodejs"),
            search=SearchConfig(default_top_k=4),
        )
        data = config.to_dict()
        assert data["working_dir"] == str(tmp_path)
        assert data["execution"]["node_binary"] == "nodejs"
        assert data["search"]["default_top_k"] == 4


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_defaults_without_file(self, tmp_path):
        manager = ConfigManager(tmp_path)
        config = manager.config

        assert config.working_dir == tmp_path.resolve()
        assert config.execution.node_binary == "node"
        assert manager.config is config

    def test_picks_up_file_in_working_dir(self, tmp_path):
        (tmp_path / ConfigManager.CONFIG_FILENAME).write_text("search:\n  default_top_k: 2\n")
        assert ConfigManager(tmp_path).load_config().search.default_top_k == 2

    def test_explicit_path(self, tmp_path):
        other = tmp_path / "elsewhere.yaml"
        other.write_text("execution:\n  deno_binary: /bin/deno\n")
        config = ConfigManager(tmp_path, config_path=other).load_config()
        assert config.execution.deno_binary == "/bin/deno"

    def test_missing_working_dir(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Working directory"):
            ConfigManager(tmp_path / "gone").load_config()

    def test_empty_file_means_defaults(self, tmp_path):
        (tmp_path / "mcp_repl.yaml").write_text("")
        config = ConfigManager(Path(tmp_path)).load_config()
        assert config.search.default_top_k == 8
