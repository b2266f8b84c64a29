"""Unit tests for the registry_auth.main CLI module.

Tests cover:
- lookup: masked and unmasked output, defaults, helper options
- repository: registry host extraction
- check: strategy reporting and configuration errors
- Invalid environment settings
"""

import json

import pytest
from click.testing import CliRunner

from registry_auth.main import cli

REGISTRY = "myregistry.example.com"


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


def _last_json_line(output: str) -> dict:
    return json.loads(output.strip().splitlines()[-1])


class TestLookupCommand:
    """Tests for the lookup command."""

    def test_masked_by_default(self, cli_runner, write_config):
        """Secrets are masked unless asked for."""
        path = write_config({"auths": {f"https://{REGISTRY}": {"username": "jdoe", "password": "pw"}}})

        result = cli_runner.invoke(cli, ["lookup", f"{REGISTRY}/app:1.0", "--config", str(path)])

        assert result.exit_code == 0
        assert _last_json_line(result.output) == {
            "registry_address": f"https://{REGISTRY}",
            "username": "jdoe",
            "password": "***",
        }

    def test_show_secrets(self, cli_runner, write_config):
        """--show-secrets prints the password."""
        path = write_config({"auths": {REGISTRY: {"username": "jdoe", "password": "pw"}}})

        result = cli_runner.invoke(cli, ["lookup", f"{REGISTRY}/app", "--config", str(path), "--show-secrets"])

        assert result.exit_code == 0
        assert _last_json_line(result.output)["password"] == "pw"

    def test_defaults_when_not_configured(self, cli_runner, write_config):
        """The default credentials are printed with a notice."""
        path = write_config({})

        result = cli_runner.invoke(
            cli,
            [
                "lookup",
                f"{REGISTRY}/app",
                "--config",
                str(path),
                "--registry",
                "fallback.example.com",
                "--username",
                "anon",
                "--show-secrets",
            ],
            env={"REGISTRY_AUTH_DEFAULT_PASSWORD": "anon-pw"},
        )

        assert result.exit_code == 0
        assert "No credentials found, using defaults" in result.output
        assert _last_json_line(result.output) == {
            "registry_address": "fallback.example.com",
            "username": "anon",
            "password": "anon-pw",
        }

    def test_malformed_config_is_not_fatal(self, cli_runner, write_config):
        """Lookup falls back to the defaults on a broken file."""
        path = write_config("{")

        result = cli_runner.invoke(cli, ["lookup", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 0
        assert _last_json_line(result.output)["registry_address"] == ""

    def test_helper_prefix_option(self, cli_runner, write_config, echo_helper, helper_prefix):
        """--helper-prefix locates the credential helper."""
        path = write_config({"credHelpers": {REGISTRY: echo_helper}})

        result = cli_runner.invoke(
            cli,
            ["lookup", f"{REGISTRY}/app", "--config", str(path), "--helper-prefix", helper_prefix, "--timeout", "30"],
        )

        assert result.exit_code == 0
        assert _last_json_line(result.output) == {
            "registry_address": REGISTRY,
            "username": "helper-user",
            "password": "***",
        }

    def test_config_from_environment(self, cli_runner, write_config, monkeypatch):
        """DOCKER_CONFIG is used when --config is not given."""
        path = write_config({"auths": {REGISTRY: {"username": "jdoe"}}})
        monkeypatch.setenv("DOCKER_CONFIG", str(path.parent))

        result = cli_runner.invoke(cli, ["lookup", f"{REGISTRY}/app"])

        assert result.exit_code == 0
        assert _last_json_line(result.output)["username"] == "jdoe"


class TestRepositoryCommand:
    """Tests for the repository command."""

    @pytest.mark.parametrize(
        "image,expected",
        [
            ("localhost:5000/app", "localhost:5000"),
            ("gcr.io/project/app:1.0", "gcr.io"),
            ("library/ubuntu", ""),
        ],
    )
    def test_prints_host(self, cli_runner, image, expected):
        """The registry host is printed on its own line."""
        result = cli_runner.invoke(cli, ["repository", image])

        assert result.exit_code == 0
        assert result.output == f"{expected}\n"


class TestCheckCommand:
    """Tests for the check command."""

    def test_auths_strategy(self, cli_runner, write_config):
        """A matching auths entry is reported with its key."""
        path = write_config({"auths": {f"https://{REGISTRY}": {"auth": "dTpw"}}})

        result = cli_runner.invoke(cli, ["check", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 0
        assert f"Config file: {path}" in result.output
        assert f"Registry: {REGISTRY}" in result.output
        assert f"Strategy: auths (https://{REGISTRY})" in result.output

    def test_cred_helpers_strategy(self, cli_runner, write_config):
        """The per-registry helper command is reported without running it."""
        path = write_config({"auths": {REGISTRY: {}}, "credHelpers": {REGISTRY: "gcloud"}, "credsStore": "desktop"})

        result = cli_runner.invoke(cli, ["check", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 0
        assert "Strategy: credHelpers (docker-credential-gcloud)" in result.output

    def test_creds_store_strategy(self, cli_runner, write_config):
        """The global store is reported when nothing more specific exists."""
        path = write_config({"credsStore": "desktop"})

        result = cli_runner.invoke(cli, ["check", "library/ubuntu", "--config", str(path)])

        assert result.exit_code == 0
        assert "Registry: (default registry)" in result.output
        assert "Strategy: credsStore (docker-credential-desktop)" in result.output

    def test_no_strategy(self, cli_runner, write_config):
        """Nothing configured means default credentials."""
        path = write_config({"auths": {"other.example.com": {"username": "u"}}})

        result = cli_runner.invoke(cli, ["check", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 0
        assert "Strategy: none (default credentials)" in result.output

    def test_malformed_config(self, cli_runner, write_config):
        """Configuration errors are reported and exit non-zero."""
        path = write_config("[1, 2")

        result = cli_runner.invoke(cli, ["check", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 1
        assert "Error: Invalid JSON in configuration file" in result.output

    def test_missing_config(self, cli_runner, tmp_path):
        """A missing file carries a suggestion."""
        result = cli_runner.invoke(cli, ["check", f"{REGISTRY}/app", "--config", str(tmp_path / "nope.json")])

        assert result.exit_code == 1
        assert "Error: Configuration file not found" in result.output
        assert "Suggestion: Run 'docker login' or set DOCKER_CONFIG" in result.output

    def test_malformed_entry_for_registry(self, cli_runner, write_config):
        """A broken entry for the checked registry is reported."""
        path = write_config({"auths": {REGISTRY: "not-an-object", "other.example.com": {"username": "u"}}})

        result = cli_runner.invoke(cli, ["check", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 1
        assert "Error: Unexpected auths entry" in result.output

    def test_malformed_entry_for_other_registry(self, cli_runner, write_config):
        """Broken entries for other registries are not reported."""
        path = write_config({"auths": {"other.example.com": "not-an-object"}, "credsStore": "desktop"})

        result = cli_runner.invoke(cli, ["check", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 0
        assert "Strategy: credsStore (docker-credential-desktop)" in result.output


class TestGroupOptions:
    """Options handled by the command group."""

    def test_invalid_environment(self, cli_runner):
        """A bad REGISTRY_AUTH_* value aborts with exit code 1."""
        result = cli_runner.invoke(cli, ["repository", "gcr.io/app"], env={"REGISTRY_AUTH_HELPER_TIMEOUT": "-5"})

        assert result.exit_code == 1
        assert "invalid REGISTRY_AUTH_* environment" in result.output

    def test_debug_logs_on_stderr(self, cli_runner, write_config):
        """--log-level DEBUG emits JSON log lines next to the result."""
        path = write_config({"auths": {REGISTRY: {"username": "jdoe"}}})

        result = cli_runner.invoke(cli, ["--log-level", "debug", "lookup", f"{REGISTRY}/app", "--config", str(path)])

        assert result.exit_code == 0
        events = [json.loads(line)["event"] for line in result.output.strip().splitlines()[:-1]]
        assert "auth_lookup_resolved" in events
