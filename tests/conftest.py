"""Pytest configuration and shared fixtures."""

import json
import stat
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog

from registry_auth.models import AuthConfig

HELPER_TEMPLATE = """#!{python}
import json
import sys

{body}
"""


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo configure_logging calls made by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def isolated_docker_env(monkeypatch, tmp_path: Path):
    """Keep the developer's real Docker configuration out of tests."""
    monkeypatch.delenv("DOCKER_CONFIG", raising=False)
    for var in (
        "REGISTRY_AUTH_CONFIG_FILE",
        "REGISTRY_AUTH_HELPER_PREFIX",
        "REGISTRY_AUTH_HELPER_TIMEOUT",
        "REGISTRY_AUTH_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def default_auth() -> AuthConfig:
    """Caller-supplied fallback credentials."""
    return AuthConfig(registry_address="default", username="default-user", password="default-pass")


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Any], Path]:
    """Factory writing a config.json and returning its path.

    Strings are written verbatim, anything else is JSON-encoded.
    """
    config_dir = tmp_path / "docker"
    config_dir.mkdir()
    config_file = config_dir / "config.json"

    def _write(content: Any) -> Path:
        text = content if isinstance(content, str) else json.dumps(content)
        config_file.write_text(text, encoding="utf-8")
        return config_file

    return _write


@pytest.fixture
def helper_bin(tmp_path: Path) -> Path:
    """Directory holding fake credential helpers."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return bin_dir


@pytest.fixture
def helper_prefix(helper_bin: Path) -> str:
    """Helper prefix pointing into ``helper_bin``."""
    return str(helper_bin / "docker-credential-")


@pytest.fixture
def make_helper(helper_bin: Path) -> Callable[[str, str], Path]:
    """Factory creating an executable ``docker-credential-<name>`` script.

    The body is Python source; ``json`` and ``sys`` are already imported.
    """

    def _make(name: str, body: str) -> Path:
        script = helper_bin / f"docker-credential-{name}"
        script.write_text(
            HELPER_TEMPLATE.format(python=sys.executable, body=textwrap.dedent(body)),
            encoding="utf-8",
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def echo_helper(make_helper) -> str:
    """Helper named ``echo`` that returns the host it was given as ServerURL."""
    make_helper(
        "echo",
        """
        host = sys.stdin.read()
        json.dump({"ServerURL": host, "Username": "helper-user", "Secret": "helper-secret"}, sys.stdout)
        """,
    )
    return "echo"
