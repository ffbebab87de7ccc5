"""Cross-process tick lock backed by an Azure blob lease."""

from __future__ import annotations

import contextlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from azure.core.exceptions import HttpResponseError, ResourceExistsError
from azure.storage.blob import BlobLeaseClient, BlobServiceClient

from drive_indexer.state.store import DEFAULT_STATE_CONTAINER

if TYPE_CHECKING:
    from drive_indexer.config import AppConfig

logger = logging.getLogger(__name__)

# Outside the checkpoint prefix, so clearing the checkpoint never touches it.
DEFAULT_LOCK_BLOB = "locks/tick"
# Matches functionTimeout in host.json; no live tick can hold the lease longer.
DEFAULT_STALE_AFTER_SECONDS = 10 * 60
INFINITE_LEASE = -1
ACQUIRED_AT_METADATA = "acquired_at"
HTTP_CONFLICT = 409


class BlobTickLock:
    """Exclusive lock held as an infinite lease on a marker blob.

    The holder stamps the acquisition time into the blob's metadata. A lease
    older than ``stale_after_seconds`` belongs to a host that died without
    releasing it and is broken by the next caller.
    """

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_STATE_CONTAINER,
        blob_name: str = DEFAULT_LOCK_BLOB,
        stale_after_seconds: float = DEFAULT_STALE_AFTER_SECONDS,
    ) -> None:
        """Initialise the lock.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container holding the marker blob.
            blob_name: Name of the marker blob the lease is taken on.
            stale_after_seconds: Age after which a held lease is broken.
        """
        blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container_client = blob_service.get_container_client(container)
        self._blob_client = self._container_client.get_blob_client(blob_name)
        self._blob_name = blob_name
        self._stale_after_seconds = stale_after_seconds
        self._lease: BlobLeaseClient | None = None

    def _ensure_blob(self) -> None:
        with contextlib.suppress(ResourceExistsError):
            self._container_client.create_container()
        with contextlib.suppress(ResourceExistsError):
            self._blob_client.upload_blob(b"", overwrite=False)

    def _try_lease(self) -> BlobLeaseClient | None:
        lease = BlobLeaseClient(self._blob_client)
        try:
            lease.acquire(lease_duration=INFINITE_LEASE)
        except HttpResponseError as exc:
            if exc.status_code != HTTP_CONFLICT:
                raise
            return None
        return lease

    def _break_if_stale(self) -> bool:
        properties = self._blob_client.get_blob_properties()
        acquired_at = (properties.metadata or {}).get(ACQUIRED_AT_METADATA)
        if acquired_at is None:
            return False

        age = (datetime.now(tz=UTC) - datetime.fromisoformat(acquired_at)).total_seconds()
        if age < self._stale_after_seconds:
            return False

        logger.warning(
            "[tick_lock] breaking stale lease; blob:%s;age_seconds:%.0f", self._blob_name, age
        )
        BlobLeaseClient(self._blob_client).break_lease(lease_break_period=0)
        return True

    def acquire(self) -> bool:
        """Take the lease, or return False if a live tick holds it."""
        self._ensure_blob()
        lease = self._try_lease()
        if lease is None and self._break_if_stale():
            lease = self._try_lease()
        if lease is None:
            logger.info("[tick_lock] lock busy; blob:%s", self._blob_name)
            return False

        self._blob_client.set_blob_metadata(
            {ACQUIRED_AT_METADATA: datetime.now(tz=UTC).isoformat()}, lease=lease
        )
        self._lease = lease
        logger.debug("[tick_lock] acquired; blob:%s", self._blob_name)
        return True

    def release(self) -> None:
        """Release the lease if held. A failed release is left to stale-lease recovery."""
        if self._lease is None:
            return
        lease, self._lease = self._lease, None
        try:
            lease.release()
        except HttpResponseError:
            logger.warning(
                "[tick_lock] release failed, lease will be broken once stale; blob:%s",
                self._blob_name,
                exc_info=True,
            )
            return
        logger.debug("[tick_lock] released; blob:%s", self._blob_name)


def blob_tick_lock_from_config(config: AppConfig) -> BlobTickLock:
    """Construct a BlobTickLock in the checkpoint container."""
    return BlobTickLock(
        storage_connection_string=config.storage_connection_string,
        container=config.checkpoint_container,
    )
