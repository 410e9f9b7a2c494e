"""
Configuration management for mcp-repl.
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .. import __version__
from .exceptions import ConfigurationError


@dataclass
class ExecutionConfig:
    """Configuration for the code execution runtimes."""

    node_binary: str = "node"
    node_module_args: list[str] = field(default_factory=lambda: ["--input-type=module"])
    deno_binary: str = "deno"
    deno_args: list[str] = field(default_factory=lambda: ["run", "--allow-all", "-"])
    default_timeout_ms: int = 120000
    temp_dirname: str = "temp"  # created under the working directory
    classifier_ignores_comments: bool = False


@dataclass
class SearchConfig:
    """Configuration for semantic code search."""

    default_extensions: list[str] = field(default_factory=lambda: ["js", "ts"])
    default_ignores: list[str] = field(default_factory=lambda: ["node_modules"])
    default_top_k: int = 8
    index_on_startup: bool = True
    max_file_bytes: int = 512000
    snippet_lines: int = 12


@dataclass
class ServerConfig:
    """Configuration for the MCP server."""

    name: str = "direct-node-executor"
    version: str = __version__
    log_level: str = "WARNING"


def _build_section(section_cls: type, raw: Any) -> Any:
    if raw is None:
        return section_cls()
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Section '{section_cls.__name__}' must be a mapping, got {type(raw).__name__}"
        )
    valid = {f.name for f in fields(section_cls)}
    return section_cls(**{key: value for key, value in raw.items() if key in valid})


@dataclass
class GatewayConfig:
    """Main gateway configuration."""

    working_dir: Path = field(default_factory=Path.cwd)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any], working_dir: Path | None = None) -> "GatewayConfig":
        """Build configuration from a plain mapping."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        root = working_dir or data.get("working_dir") or Path.cwd()
        config = cls(
            working_dir=Path(root).expanduser().resolve(),
            execution=_build_section(ExecutionConfig, data.get("execution")),
            search=_build_section(SearchConfig, data.get("search")),
            server=_build_section(ServerConfig, data.get("server")),
        )
        config._load_overrides_from_env()
        return config

    @classmethod
    def load_from_file(cls, config_path: Path, working_dir: Path | None = None) -> "GatewayConfig":
        """Load configuration from file."""
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                if config_path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        try:
            return cls.from_dict(data or {}, working_dir=working_dir)
        except TypeError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def _load_overrides_from_env(self) -> None:
        """Apply environment variable overrides."""
        node_binary = os.getenv("MCP_REPL_NODE_BINARY")
        if node_binary:
            self.execution.node_binary = node_binary

        deno_binary = os.getenv("MCP_REPL_DENO_BINARY")
        if deno_binary:
            self.execution.deno_binary = deno_binary

        log_level = os.getenv("MCP_REPL_LOG_LEVEL")
        if log_level:
            self.server.log_level = log_level

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["working_dir"] = str(self.working_dir)
        return data


class ConfigManager:
    """Locates and loads the gateway configuration for a working directory."""

    CONFIG_FILENAME = "mcp_repl.yaml"

    def __init__(self, working_dir: Path | None = None, config_path: Path | None = None):
        self.working_dir = Path(working_dir or Path.cwd()).expanduser().resolve()
        self.config_path = config_path
        self._config: GatewayConfig | None = None

    def _resolve_config_path(self) -> Path | None:
        if self.config_path is not None:
            return Path(self.config_path)
        candidate = self.working_dir / self.CONFIG_FILENAME
        return candidate if candidate.exists() else None

    @property
    def config(self) -> GatewayConfig:
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> GatewayConfig:
        """Load configuration, falling back to defaults when no file exists."""
        if not self.working_dir.is_dir():
            raise ConfigurationError(f"Working directory does not exist: {self.working_dir}")

        path = self._resolve_config_path()
        if path is None:
            return GatewayConfig.from_dict({}, working_dir=self.working_dir)
        return GatewayConfig.load_from_file(path, working_dir=self.working_dir)
