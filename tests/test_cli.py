"""
Tests for the CLI module.

Tests the command-line interface using Click's testing utilities.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from b24_contact_sync.api.crm_api import CrmAPIError
from b24_contact_sync.cli import (
    DEFAULT_CONFIG_DIR,
    build_normalizer,
    build_snapshot_store,
    cli,
    get_config_dir,
)
from b24_contact_sync.sync.contact import Contact, ContactEntry, ContactPage
from b24_contact_sync.sync.names import HttpNameDecomposer, NullNameDecomposer

WEBHOOK = "https://example.bitrix24.ru/rest/1/secret/"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Isolated config and cache directories with no ambient settings."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("B24_CONTACT_SYNC_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("B24_CONTACT_SYNC_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("B24_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("B24_CONTACT_SYNC_CONFIG_FILE", raising=False)
    return tmp_path


@pytest.fixture
def mock_api():
    with patch("b24_contact_sync.cli.main.CrmAPI") as mock_api_class:
        api = MagicMock()
        mock_api_class.return_value = api
        yield mock_api_class, api


@pytest.fixture(autouse=True)
def quiet():
    with (
        patch("b24_contact_sync.cli.main.setup_logging"),
        patch("b24_contact_sync.cli.main.cleanup_old_logs"),
        patch("b24_contact_sync.sync.engine.time.sleep"),
    ):
        yield


def write_config(workdir, text):
    config_dir = workdir / "config"
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.yaml").write_text(text)


class TestHelperFunctions:
    """Tests for CLI helper functions."""

    def test_default_config_dir_is_in_home(self):
        assert Path.home() / ".b24-contact-sync" == DEFAULT_CONFIG_DIR

    def test_get_config_dir_with_custom_path(self, tmp_path):
        assert get_config_dir(str(tmp_path)) == tmp_path.resolve()

    def test_build_normalizer_defaults(self):
        normalizer = build_normalizer({})
        assert normalizer.phone_region == "RU"
        assert isinstance(normalizer.splitter.decomposer, NullNameDecomposer)

    def test_build_normalizer_with_name_service(self):
        normalizer = build_normalizer(
            {
                "name_service_url": "http://localhost/split",
                "name_service_timeout": 3,
                "phone_region": "by",
            }
        )
        assert normalizer.phone_region == "BY"
        decomposer = normalizer.splitter.decomposer
        assert isinstance(decomposer, HttpNameDecomposer)
        assert decomposer.timeout == 3

    def test_build_snapshot_store_from_config(self, tmp_path):
        store = build_snapshot_store({"cache_dir": str(tmp_path / "snap")})
        assert store.cache_dir == (tmp_path / "snap").resolve()


class TestCliGroup:
    """Tests for the main CLI group."""

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Bitrix24 CRM contact cleanup" in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "b24-contact-sync" in result.output

    def test_invalid_config_warns_and_continues(self, runner, workdir):
        write_config(workdir, "max_fetch_retries: zero\n")

        result = runner.invoke(cli, ["init-config", "--force"])

        assert "Warning: Configuration error" in result.output
        assert result.exit_code == 0


class TestSyncCommand:
    """Tests for the sync command."""

    def test_sync_help(self, runner):
        result = runner.invoke(cli, ["sync", "--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output
        assert "--webhook-url" in result.output

    def test_missing_webhook_fails_before_any_request(self, runner, workdir, mock_api):
        mock_api_class, _ = mock_api

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 1
        assert "webhook URL is not configured" in result.output
        mock_api_class.assert_not_called()

    def test_sync_runs_pass(self, runner, workdir, mock_api):
        mock_api_class, api = mock_api
        api.list_contacts.return_value = ContactPage(
            [Contact(contact_id=1, name="Иван1")], next=-1, total=1
        )

        result = runner.invoke(cli, ["sync", "--webhook-url", WEBHOOK])

        assert result.exit_code == 0, result.output
        assert "Sync Summary:" in result.output
        assert mock_api_class.call_args.args[0] == WEBHOOK
        api.update_contact.assert_called_once_with(1, {"NAME": "Иван"})
        assert (workdir / "cache" / "contacts.json").exists()
        assert (workdir / "cache" / "contacts_sanitized.json").exists()

    def test_webhook_from_environment(self, runner, workdir, mock_api, monkeypatch):
        mock_api_class, api = mock_api
        api.list_contacts.return_value = ContactPage([], next=-1, total=0)
        monkeypatch.setenv("B24_WEBHOOK_URL", WEBHOOK)

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 0, result.output
        assert mock_api_class.call_args.args[0] == WEBHOOK

    def test_webhook_from_config(self, runner, workdir, mock_api):
        mock_api_class, api = mock_api
        api.list_contacts.return_value = ContactPage([], next=-1, total=0)
        write_config(workdir, f"webhook_url: {WEBHOOK}\nrequest_timeout: 7\n")

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 0, result.output
        mock_api_class.assert_called_once_with(WEBHOOK, timeout=7)

    def test_dry_run(self, runner, workdir, mock_api):
        _, api = mock_api
        api.list_contacts.return_value = ContactPage(
            [
                Contact(
                    contact_id=2,
                    phones=[ContactEntry("89991234567"), ContactEntry("+79991234567")],
                )
            ],
            next=-1,
            total=1,
        )

        result = runner.invoke(cli, ["sync", "--dry-run", "--webhook-url", WEBHOOK])

        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert "Updates planned (dry run): 1" in result.output
        api.update_contact.assert_not_called()

    def test_fetch_failures_abort(self, runner, workdir, mock_api):
        _, api = mock_api
        api.list_contacts.side_effect = CrmAPIError("503")

        result = runner.invoke(
            cli, ["sync", "--webhook-url", WEBHOOK, "--max-retries", "1"]
        )

        assert result.exit_code == 1
        assert "Sync aborted" in result.output
        assert api.list_contacts.call_count == 2


class TestNormalizeCommand:
    """Tests for the offline normalize command."""

    def test_normalize_snapshot(self, runner, workdir):
        cache = workdir / "cache"
        cache.mkdir()
        (cache / "contacts_raw.json").write_text(
            json.dumps(
                [
                    {"ID": 1, "NAME": "Иван"},
                    {"ID": 2, "NAME": "Пётр!", "EMAIL": [{"ID": 5, "VALUE": "bad"}]},
                ],
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["normalize"])

        assert result.exit_code == 0, result.output
        assert "Contacts changed: 1" in result.output
        sanitized = json.loads(
            (cache / "contacts_sanitized.json").read_text(encoding="utf-8")
        )
        assert sanitized == [
            {"ID": 2, "NAME": "Пётр", "EMAIL": [{"ID": 5, "VALUE": ""}]}
        ]

    def test_normalize_after_dry_run_matches_plan(self, runner, workdir, mock_api):
        _, api = mock_api
        api.list_contacts.return_value = ContactPage(
            [Contact(contact_id=3, name="Анна!"), Contact(contact_id=4, name="Олег")],
            next=-1,
            total=2,
        )
        sanitized_path = workdir / "cache" / "contacts_sanitized.json"

        sync_result = runner.invoke(
            cli, ["sync", "--dry-run", "--webhook-url", WEBHOOK]
        )
        planned = json.loads(sanitized_path.read_text(encoding="utf-8"))
        result = runner.invoke(cli, ["normalize"])

        assert sync_result.exit_code == 0, sync_result.output
        assert result.exit_code == 0, result.output
        assert "Contacts changed: 1" in result.output
        assert planned == [{"ID": 3, "NAME": "Анна"}]
        assert json.loads(sanitized_path.read_text(encoding="utf-8")) == planned

    def test_normalize_missing_snapshot(self, runner, workdir):
        result = runner.invoke(cli, ["normalize"])

        assert result.exit_code == 1
        assert "No contacts found" in result.output


class TestInitConfigCommand:
    """Tests for the init-config command."""

    def test_creates_config(self, runner, workdir):
        result = runner.invoke(cli, ["init-config"])

        assert result.exit_code == 0
        assert "Configuration file created" in result.output
        assert (workdir / "config" / "config.yaml").exists()

    def test_refuses_to_overwrite(self, runner, workdir):
        write_config(workdir, "verbose: true\n")

        result = runner.invoke(cli, ["init-config"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_custom_config_file(self, runner, workdir):
        target = workdir / "elsewhere.yaml"

        result = runner.invoke(cli, ["--config-file", str(target), "init-config"])

        assert result.exit_code == 0
        assert target.exists()
