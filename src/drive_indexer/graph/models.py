"""Data models for Microsoft Graph API drive items and folder listings."""

from dataclasses import dataclass, field

# Graph API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_FOLDER = "folder"
FIELD_SIZE = "size"
FIELD_WEB_URL = "webUrl"
FIELD_LAST_MODIFIED = "lastModifiedDateTime"

# Workbook range response keys
FIELD_VALUES = "values"
FIELD_ROW_COUNT = "rowCount"
FIELD_COLUMN_COUNT = "columnCount"

# OData response keys
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_VALUE = "value"


@dataclass
class DriveFile:
    """A single file inside a OneDrive folder."""

    id: str
    name: str
    last_modified: str
    size: int
    web_url: str


@dataclass
class DriveFolderRef:
    """A direct child folder, as seen from its parent's listing."""

    id: str
    name: str


@dataclass
class FolderContents:
    """Direct contents of a OneDrive folder after enumeration.

    Both lists keep the order the tree store returned them in, which must be
    stable between calls for an interrupted listing to be resumed.
    """

    folder_id: str
    name: str
    files: list[DriveFile] = field(default_factory=list)
    subfolders: list[DriveFolderRef] = field(default_factory=list)
