"""
Google Drive API Service for folder listing and file metadata.
Handles Drive API client initialization, raw API calls, and response parsing.
Low-level Drive API client; retry policy lives in the retrying accessor.
"""

import httpx

from recording_discovery.config import settings
from recording_discovery.infrastructure.observability.logging import get_logger
from recording_discovery.models.domain.drive_domain import (
    DRIVE_FOLDER_MIME_TYPE,
    DriveFilePage,
    RemoteFile,
)
from recording_discovery.services.drive.remote_store import RemoteStoreError

logger = get_logger(__name__)

FILE_FIELDS = "id, name, mimeType, size, createdTime, modifiedTime, parents, webViewLink"
LIST_FIELDS = f"nextPageToken, files({FILE_FIELDS})"


class GoogleDriveError(RemoteStoreError):
    """Custom exception for Google Drive API errors."""


class GoogleDriveService:
    """
    Service for Google Drive API operations.

    Pure API client that handles HTTP requests, authentication and error
    mapping. Every call is a single attempt so that retry decisions stay in
    one place.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self._access_token = access_token
        self._base_url = (base_url or settings.DRIVE_API_BASE_URL).rstrip("/")
        self._client = self._create_client(timeout or settings.DRIVE_REQUEST_TIMEOUT)

    def _create_client(self, timeout: float) -> httpx.AsyncClient:
        """Create async HTTP client for Drive API."""
        limits = httpx.Limits(max_keepalive_connections=5, max_connections=10)
        return httpx.AsyncClient(timeout=httpx.Timeout(timeout), limits=limits)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _get_auth_headers(self) -> dict:
        """Get authorization headers for Drive API requests."""
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }

    async def _get(self, url: str, params: dict, operation: str) -> dict:
        try:
            response = await self._client.get(url, params=params, headers=self._get_auth_headers())
        except httpx.RequestError as e:
            logger.warning(f"Drive API {operation} request error", error=str(e))
            raise GoogleDriveError(
                f"Drive API request failed: {e}", error_code="network_error"
            ) from e
        return self._handle_api_response(response, operation)

    def _handle_api_response(self, response: httpx.Response, operation: str) -> dict:
        """
        Handle and validate Drive API response.

        Args:
            response: HTTP response from Drive API
            operation: Operation name for logging

        Returns:
            dict: Parsed response data

        Raises:
            GoogleDriveError: If response contains errors
        """
        logger.debug(
            f"Drive API {operation} response",
            status_code=response.status_code,
            response_size=len(response.text) if response.text else 0,
        )

        if response.is_success:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error(f"Failed to parse Drive API {operation} response", error=str(e))
                raise GoogleDriveError(f"Invalid response format: {e}") from e

        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            logger.error(
                f"Drive API {operation} failed with non-JSON response",
                status_code=response.status_code,
                response_text=response.text[:200] if response.text else "",
            )
            raise GoogleDriveError(
                f"Drive API error (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from None

        error_info = error_data.get("error", {}) if isinstance(error_data, dict) else {}
        error_message = error_info.get("message", "Unknown Drive API error")
        reasons = [e.get("reason") for e in error_info.get("errors", []) if e.get("reason")]
        error_code = reasons[0] if reasons else str(error_info.get("code", response.status_code))

        logger.error(
            f"Drive API {operation} failed",
            status_code=response.status_code,
            error_code=error_code,
            error_message=error_message,
        )

        raise GoogleDriveError(
            self._map_drive_error(response.status_code, error_message),
            error_code=error_code,
            status_code=response.status_code,
            response_data=error_data,
        )

    def _map_drive_error(self, status_code: int, error_message: str) -> str:
        """Map Drive API status codes to readable messages."""
        error_mappings = {
            400: "Invalid Drive request format.",
            401: "Drive authorization expired. Please refresh the access token.",
            403: f"Drive access denied: {error_message}",
            404: "Drive file or folder not found.",
            429: "Too many Drive requests. Please try again later.",
            500: "Google Drive service temporarily unavailable.",
            503: "Google Drive service overloaded.",
        }

        return error_mappings.get(status_code, f"Drive error: {error_message}")

    async def list_children(
        self,
        folder_id: str,
        page_token: str | None = None,
        *,
        folders_only: bool = False,
        page_size: int = 100,
    ) -> DriveFilePage:
        """
        List one page of the direct children of a folder.

        Args:
            folder_id: Parent folder id
            page_token: Token from the previous page, if any
            folders_only: Restrict the listing to subfolders
            page_size: Maximum items per page

        Returns:
            DriveFilePage: Children and the next page token

        Raises:
            GoogleDriveError: If listing fails
        """
        clauses = [f"'{folder_id}' in parents", "trashed = false"]
        if folders_only:
            clauses.append(f"mimeType = '{DRIVE_FOLDER_MIME_TYPE}'")

        params = {
            "q": " and ".join(clauses),
            "fields": LIST_FIELDS,
            "pageSize": page_size,
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        if page_token:
            params["pageToken"] = page_token

        data = await self._get(f"{self._base_url}/files", params, "list_children")
        files = [RemoteFile.from_api(item) for item in data.get("files", [])]

        logger.debug(
            "Listed Drive folder page",
            folder_id=folder_id,
            file_count=len(files),
            has_more=bool(data.get("nextPageToken")),
        )
        return DriveFilePage(files=files, next_page_token=data.get("nextPageToken"))

    async def get_item(self, item_id: str) -> RemoteFile:
        """
        Get metadata for a single file or folder.

        Raises:
            GoogleDriveError: If the lookup fails
        """
        params = {"fields": FILE_FIELDS, "supportsAllDrives": "true"}
        data = await self._get(f"{self._base_url}/files/{item_id}", params, "get_item")
        return RemoteFile.from_api(data)
