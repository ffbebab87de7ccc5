"""Unit tests for config.py — AppConfig and load_config()."""

import os
from unittest.mock import patch

import pytest

from drive_indexer.config import AppConfig, load_config

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Minimal set of required environment variables for load_config()
_REQUIRED_ENV = {
    "SF_CLIENT_ID": "test-client-id",
    "SF_CLIENT_SECRET": "test-secret",
    "SF_TENANT_ID": "test-tenant-id",
    "SF_DRIVE_USER": "user@contoso.onmicrosoft.com",
    "AzureWebJobsStorage": "DefaultEndpointsProtocol=https;AccountName=test",
    "SF_ROOT_FOLDER_ID": "root-folder-id",
    "SF_WORKBOOK_ITEM_ID": "workbook-item-id",
}


def _config(**overrides: object) -> AppConfig:
    values: dict[str, object] = {
        "client_id": "cid",
        "client_secret": "cs",
        "tenant_id": "tid",
        "drive_user": "u",
        "storage_connection_string": "conn",
        "root_folder_id": "root",
        "workbook_item_id": "wb",
    }
    values.update(overrides)
    return AppConfig(**values)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# AppConfig tests
# ---------------------------------------------------------------------------


class TestAppConfig:
    def test_time_budget_defaults_to_five_and_a_half_minutes(self) -> None:
        assert _config().time_budget_seconds == 330.0

    def test_reschedule_delay_defaults_to_one_second(self) -> None:
        assert _config().reschedule_delay_ms == 1000

    def test_worksheet_can_be_overridden(self) -> None:
        assert _config(worksheet_name="Index").worksheet_name == "Index"


# ---------------------------------------------------------------------------
# load_config tests
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_reads_required_ids_from_env(self) -> None:
        with patch.dict(os.environ, _REQUIRED_ENV, clear=True):
            config = load_config()
        assert config.root_folder_id == "root-folder-id"
        assert config.workbook_item_id == "workbook-item-id"
        assert config.storage_connection_string.startswith("DefaultEndpointsProtocol")

    def test_defaults_when_optional_vars_absent(self) -> None:
        with patch.dict(os.environ, _REQUIRED_ENV, clear=True):
            config = load_config()
        assert config.worksheet_name == "Sheet1"
        assert config.checkpoint_container == "drive-indexer-state"
        assert config.checkpoint_prefix == "checkpoint/"
        assert config.time_budget_seconds == 330.0

    def test_reads_numeric_overrides(self) -> None:
        env = {
            **_REQUIRED_ENV,
            "SF_TIME_BUDGET_SECONDS": "60",
            "SF_RESCHEDULE_DELAY_MS": "2500",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config()
        assert config.time_budget_seconds == 60.0
        assert config.reschedule_delay_ms == 2500

    @pytest.mark.parametrize("missing", ["SF_ROOT_FOLDER_ID", "SF_WORKBOOK_ITEM_ID"])
    def test_raises_key_error_when_required_id_missing(self, missing: str) -> None:
        env = {k: v for k, v in _REQUIRED_ENV.items() if k != missing}
        with patch.dict(os.environ, env, clear=True), pytest.raises(KeyError):
            load_config()
