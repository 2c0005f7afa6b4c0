# recording_discovery/models/domain/drive_domain.py
"""
Drive Domain Models
Snapshots of Google Drive items as returned by the files.list / files.get APIs.
"""

from dataclasses import dataclass
from datetime import datetime

DRIVE_FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


def _parse_datetime_iso(dt_str: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp from the Drive API."""
    if not dt_str:
        return None
    try:
        return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_size(raw) -> int | None:
    # Drive returns size as a string; Google-native documents omit it
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@dataclass(slots=True, frozen=True)
class RemoteFile:
    """Immutable snapshot of one Drive item (file or folder) at scan time."""

    id: str
    name: str
    mime_type: str = ""
    size: int | None = None
    parents: tuple[str, ...] = ()
    created_time: datetime | None = None
    modified_time: datetime | None = None
    web_view_link: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "RemoteFile":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            size=_parse_size(data.get("size")),
            parents=tuple(data.get("parents") or ()),
            created_time=_parse_datetime_iso(data.get("createdTime")),
            modified_time=_parse_datetime_iso(data.get("modifiedTime")),
            web_view_link=data.get("webViewLink"),
        )

    @property
    def is_folder(self) -> bool:
        return self.mime_type == DRIVE_FOLDER_MIME_TYPE


@dataclass(slots=True, frozen=True)
class DriveFilePage:
    """One page of a folder listing."""

    files: list[RemoteFile]
    next_page_token: str | None = None
