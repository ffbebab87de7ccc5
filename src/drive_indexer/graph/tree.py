"""OneDrive folder enumeration through the Graph API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from drive_indexer.graph.client import GraphClient, relative_path
from drive_indexer.graph.models import (
    FIELD_FOLDER,
    FIELD_ID,
    FIELD_LAST_MODIFIED,
    FIELD_NAME,
    FIELD_SIZE,
    FIELD_WEB_URL,
    ODATA_NEXT_LINK,
    ODATA_VALUE,
    DriveFile,
    DriveFolderRef,
    FolderContents,
)

if TYPE_CHECKING:
    from drive_indexer.config import AppConfig

logger = logging.getLogger(__name__)

# Children are requested in name order so that a listing cursor persisted
# in one tick still points at the same items in the next.
CHILDREN_QUERY = "?$orderby=name&$select=id,name,size,webUrl,lastModifiedDateTime,file,folder"


class DriveTreeStore:
    """Reads a OneDrive folder tree one folder at a time."""

    def __init__(self, graph_client: GraphClient, drive_user: str) -> None:
        """Initialise the tree store.

        Args:
            graph_client: Authenticated GraphClient instance.
            drive_user: UPN or object ID of the user whose OneDrive is indexed.
        """
        self._graph = graph_client
        self._drive_user = drive_user

    def list_folder(self, folder_id: str) -> FolderContents:
        """Enumerate the direct files and subfolders of a OneDrive folder.

        Fetches the folder item for its name, then follows @odata.nextLink
        pagination over its children.

        Args:
            folder_id: The OneDrive item ID of the folder to enumerate.

        Returns:
            FolderContents with the folder's name, files and subfolders.
        """
        base = f"/users/{self._drive_user}/drive/items/{folder_id}"
        folder = self._graph.get(base)
        contents = FolderContents(folder_id=folder_id, name=folder.get(FIELD_NAME, ""))

        next_path: str | None = f"{base}/children{CHILDREN_QUERY}"
        while next_path is not None:
            response = self._graph.get(next_path)
            for raw in response.get(ODATA_VALUE, []):
                if FIELD_FOLDER in raw:
                    contents.subfolders.append(
                        DriveFolderRef(id=raw.get(FIELD_ID, ""), name=raw.get(FIELD_NAME, ""))
                    )
                else:
                    contents.files.append(self._parse_file(raw))
            link = response.get(ODATA_NEXT_LINK)
            next_path = relative_path(link) if link else None

        logger.debug(
            "[list_folder] listed folder; folder_id:%s;file_count:%d;subfolder_count:%d",
            folder_id,
            len(contents.files),
            len(contents.subfolders),
        )
        return contents

    @staticmethod
    def _parse_file(raw: dict[str, Any]) -> DriveFile:
        """Map a raw Graph API item dict to a DriveFile dataclass."""
        return DriveFile(
            id=raw.get(FIELD_ID, ""),
            name=raw.get(FIELD_NAME, ""),
            last_modified=raw.get(FIELD_LAST_MODIFIED, ""),
            size=int(raw.get(FIELD_SIZE, 0)),
            web_url=raw.get(FIELD_WEB_URL, ""),
        )


def drive_tree_store_from_config(graph_client: GraphClient, config: AppConfig) -> DriveTreeStore:
    """Construct a DriveTreeStore from application configuration."""
    return DriveTreeStore(graph_client=graph_client, drive_user=config.drive_user)
