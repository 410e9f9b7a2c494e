"""
Pytest configuration and fixtures for mcp-repl tests.

Process tests drive the running Python interpreter as a stand-in runtime: it
reads a program from stdin when given ``-`` and runs a file passed by path,
which is all the executors need from a runtime binary.
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import Verbosity, settings

from mcp_repl.core.config import ExecutionConfig, GatewayConfig, SearchConfig

# Configure hypothesis settings for property-based testing
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,  # Disable deadline for slow operations
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


PYTHON = sys.executable


@pytest.fixture
def python_execution_config():
    """Execution config that runs snippets with the current Python interpreter."""
    return ExecutionConfig(
        node_binary=PYTHON,
        node_module_args=["-"],
        deno_binary=PYTHON,
        deno_args=["-"],
        default_timeout_ms=20000,
    )


@pytest.fixture
def gateway_config(tmp_path: Path, python_execution_config):
    """Gateway config rooted in a temp directory, without startup indexing."""
    return GatewayConfig(
        working_dir=tmp_path,
        execution=python_execution_config,
        search=SearchConfig(index_on_startup=False),
    )


@pytest.fixture
def sample_js_project(tmp_path: Path) -> Path:
    """Small JavaScript project for search tests."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "config.js").write_text(
        """const fs = require('fs');

/**
 * Parse the configuration file at the given path.
 */
function parseConfig(path, strict) {
  const raw = fs.readFileSync(path, 'utf8');
  return JSON.parse(raw);
}

module.exports = { parseConfig };
""",
        encoding="utf-8",
    )
    (src / "server.ts").write_text(
        """export class HttpServer extends BaseServer {
  // Start listening for connections
  start(port: number): void {
    this.listen(port);
  }
}

export const formatAddress = (host: string, port: number): string => {
  return `${host}:${port}`;
};
""",
        encoding="utf-8",
    )
    vendored = tmp_path / "node_modules" / "lib"
    vendored.mkdir(parents=True)
    (vendored / "index.js").write_text(
        "function parseConfig(input) { return input; }\n", encoding="utf-8"
    )
    return tmp_path
