"""
Retrying access to the remote store.

Wraps every listing/metadata call in a bounded exponential-backoff retry that
only fires for transient (rate-limit, overload, gateway) failures, and keeps a
short-lived cache of folder metadata so one scan does not look up the same
folder twice.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from recording_discovery.config import settings
from recording_discovery.infrastructure.observability.logging import (
    get_logger,
    log_retry_attempt,
)
from recording_discovery.models.domain.drive_domain import DriveFilePage, RemoteFile
from recording_discovery.services.drive.remote_store import RemoteStore, RemoteStoreError

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504, 529})
# Drive reports per-user quota exhaustion as 403 with one of these reasons
DEFAULT_TRANSIENT_ERROR_CODES = frozenset(
    {"rateLimitExceeded", "userRateLimitExceeded", "backendError", "network_error"}
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 1.5
    transient_status_codes: frozenset[int] = DEFAULT_TRANSIENT_STATUS_CODES
    transient_error_codes: frozenset[str] = DEFAULT_TRANSIENT_ERROR_CODES

    @classmethod
    def from_settings(cls, config=None) -> "RetryPolicy":
        config = config or settings
        return cls(**config.get_retry_config())

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after the given (1-based) failed attempt."""
        delay = self.base_delay * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_delay)

    def is_transient(self, error: Exception) -> bool:
        if not isinstance(error, RemoteStoreError):
            return False
        if error.status_code in self.transient_status_codes:
            return True
        if error.error_code in self.transient_error_codes:
            return True
        return "overloaded" in str(error).lower()


class FolderMetadataCache:
    """In-memory folder metadata keyed by folder id, with a fixed TTL."""

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, RemoteFile]] = {}

    def get(self, folder_id: str) -> RemoteFile | None:
        entry = self._entries.get(folder_id)
        if entry is None:
            return None
        stored_at, info = entry
        if self._clock() - stored_at >= self._ttl:
            del self._entries[folder_id]
            return None
        return info

    def put(self, folder_id: str, info: RemoteFile) -> None:
        self._entries[folder_id] = (self._clock(), info)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RetryingRemoteAccessor:
    """
    Remote store front-end used by the scanners.

    Every remote call goes through ``call``; a capped attempt count guarantees
    each operation either succeeds or raises.
    """

    def __init__(
        self,
        store: RemoteStore,
        policy: RetryPolicy | None = None,
        cache_ttl: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self.policy = policy or RetryPolicy()
        ttl = settings.FOLDER_CACHE_TTL_SECONDS if cache_ttl is None else cache_ttl
        self.cache = FolderMetadataCache(ttl, clock)
        self._sleep = sleep

    async def call(self, operation: Callable[[], Awaitable[T]], context: str = "remote call") -> T:
        """
        Run a remote operation with retry on transient failures.

        Args:
            operation: Zero-argument coroutine factory; called once per attempt
            context: Short description used in logs

        Returns:
            Whatever the operation returns

        Raises:
            RemoteStoreError: Immediately for permanent errors, or the last
                transient error once max_retries attempts are used up
        """
        max_retries = max(1, self.policy.max_retries)

        for attempt in range(1, max_retries + 1):
            try:
                return await operation()
            except RemoteStoreError as e:
                if not self.policy.is_transient(e):
                    raise
                if attempt >= max_retries:
                    logger.error(
                        "Remote call failed after all retries",
                        context=context,
                        attempts=attempt,
                        status_code=e.status_code,
                        error=str(e),
                    )
                    raise

                delay = self.policy.delay_for(attempt)
                log_retry_attempt(context, attempt, max_retries, delay, str(e))
                await self._sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RuntimeError(f"Retry loop exhausted for {context}")

    async def list_children(
        self,
        folder_id: str,
        page_token: str | None = None,
        *,
        folders_only: bool = False,
        page_size: int = 100,
    ) -> DriveFilePage:
        return await self.call(
            lambda: self._store.list_children(
                folder_id, page_token, folders_only=folders_only, page_size=page_size
            ),
            f"List files in folder {folder_id}",
        )

    async def get_item(self, item_id: str) -> RemoteFile:
        return await self.call(
            lambda: self._store.get_item(item_id),
            f"Get metadata for {item_id}",
        )

    async def get_folder_info(self, folder_id: str) -> RemoteFile:
        """Folder metadata, served from the cache while fresh."""
        cached = self.cache.get(folder_id)
        if cached is not None:
            return cached

        info = await self.get_item(folder_id)
        self.cache.put(folder_id, info)
        return info

    def remember_folder(self, folder: RemoteFile) -> None:
        """Prime the cache with a folder seen in a listing."""
        if folder.is_folder:
            self.cache.put(folder.id, folder)
