"""String key-value store backed by Azure Blob Storage."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

if TYPE_CHECKING:
    from drive_indexer.config import AppConfig

logger = logging.getLogger(__name__)

# Named constants for store configuration defaults
DEFAULT_STATE_CONTAINER = "drive-indexer-state"
DEFAULT_STATE_PREFIX = "checkpoint/"


class BlobKeyValueStore:
    """Durable string key-value store backed by Azure Blob Storage.

    Each key is one UTF-8 text blob named ``<prefix><key>`` inside a single
    container, so values survive across function invocations and host
    restarts.
    """

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_STATE_CONTAINER,
        prefix: str = DEFAULT_STATE_PREFIX,
    ) -> None:
        """Initialise the store.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container name holding the keys.
            prefix: Prefix prepended to every key's blob name.
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._prefix = prefix

    def _blob_name(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None if absent."""
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(self._blob_name(key))
            data = blob_client.download_blob().readall()
            return data.decode("utf-8")
        except ResourceNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, creating the container if needed."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceExistsError):
            container_client.create_container()

        blob_client = container_client.get_blob_client(self._blob_name(key))
        blob_client.upload_blob(value.encode("utf-8"), overwrite=True)
        logger.debug("[blob_store] stored; key:%s;bytes:%d", key, len(value))

    def delete(self, key: str) -> None:
        """Delete ``key``; deleting a missing key is not an error."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceNotFoundError):
            container_client.delete_blob(self._blob_name(key))
        logger.debug("[blob_store] deleted; key:%s", key)

    def keys(self) -> list[str]:
        """List every key currently stored under this store's prefix."""
        container_client = self._blob_service.get_container_client(self._container)
        try:
            return [
                blob.name[len(self._prefix) :]
                for blob in container_client.list_blobs(name_starts_with=self._prefix)
            ]
        except ResourceNotFoundError:
            return []

    def clear(self) -> None:
        """Delete every key under this store's prefix."""
        for key in self.keys():
            self.delete(key)
        logger.info("[blob_store] cleared all keys; prefix:%s", self._prefix)


def blob_key_value_store_from_config(config: AppConfig) -> BlobKeyValueStore:
    """Construct a BlobKeyValueStore from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured BlobKeyValueStore instance.
    """
    return BlobKeyValueStore(
        storage_connection_string=config.storage_connection_string,
        container=config.checkpoint_container,
        prefix=config.checkpoint_prefix,
    )
