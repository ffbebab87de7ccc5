"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Domain constants
    have sensible defaults but can be overridden via environment variables.
    """

    # Required — no defaults, fail at startup if missing
    client_id: str
    client_secret: str
    tenant_id: str
    drive_user: str
    storage_connection_string: str
    root_folder_id: str
    workbook_item_id: str

    # Domain constants — defaults provided, overridable via env
    worksheet_name: str = "Sheet1"
    checkpoint_container: str = "drive-indexer-state"
    checkpoint_prefix: str = "checkpoint/"
    time_budget_seconds: float = 330.0
    reschedule_delay_ms: int = 1000


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        SF_CLIENT_ID: Azure AD application (client) ID.
        SF_CLIENT_SECRET: Azure AD application client secret.
        SF_TENANT_ID: Azure AD tenant ID.
        SF_DRIVE_USER: UPN or object ID of the OneDrive user that owns the tree.
        AzureWebJobsStorage: Azure Storage account connection string.
        SF_ROOT_FOLDER_ID: OneDrive item ID of the folder to index.
        SF_WORKBOOK_ITEM_ID: OneDrive item ID of the Excel workbook receiving rows.

    Optional environment variables (with defaults):
        SF_WORKSHEET_NAME: Worksheet receiving the index (default: Sheet1).
        SF_CHECKPOINT_CONTAINER: Blob container for checkpoint storage.
        SF_CHECKPOINT_PREFIX: Blob name prefix for checkpoint keys.
        SF_TIME_BUDGET_SECONDS: Work budget per tick (default: 330, i.e. 5.5 minutes).
        SF_RESCHEDULE_DELAY_MS: Delay before the next tick runs (default: 1000).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        client_id=os.environ["SF_CLIENT_ID"],
        client_secret=os.environ["SF_CLIENT_SECRET"],
        tenant_id=os.environ["SF_TENANT_ID"],
        drive_user=os.environ["SF_DRIVE_USER"],
        storage_connection_string=os.environ["AzureWebJobsStorage"],  # noqa: SIM112
        root_folder_id=os.environ["SF_ROOT_FOLDER_ID"],
        workbook_item_id=os.environ["SF_WORKBOOK_ITEM_ID"],
        worksheet_name=os.environ.get("SF_WORKSHEET_NAME", "Sheet1"),
        checkpoint_container=os.environ.get("SF_CHECKPOINT_CONTAINER", "drive-indexer-state"),
        checkpoint_prefix=os.environ.get("SF_CHECKPOINT_PREFIX", "checkpoint/"),
        time_budget_seconds=float(os.environ.get("SF_TIME_BUDGET_SECONDS", "330")),
        reschedule_delay_ms=int(os.environ.get("SF_RESCHEDULE_DELAY_MS", "1000")),
    )
