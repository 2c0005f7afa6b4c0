"""
Remote store seam used by the scanner.

Any folder/file store that can list children and fetch single-item metadata
can back a scan; errors must carry a status or code so the retrying accessor
can tell transient failures from permanent ones.
"""

from typing import Protocol

from recording_discovery.models.domain.drive_domain import DriveFilePage, RemoteFile


class RemoteStoreError(Exception):
    """Base exception for remote store failures."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.response_data = response_data or {}


class RemoteStore(Protocol):
    async def list_children(
        self,
        folder_id: str,
        page_token: str | None = None,
        *,
        folders_only: bool = False,
        page_size: int = 100,
    ) -> DriveFilePage: ...

    async def get_item(self, item_id: str) -> RemoteFile: ...
