import pytest

from recording_discovery.models.domain.drive_domain import (
    DRIVE_FOLDER_MIME_TYPE,
    DriveFilePage,
    RemoteFile,
)
from recording_discovery.services.drive.remote_store import RemoteStoreError

KIB = 1024


class FakeDriveStore:
    """In-memory folder tree with paginated listings and injectable failures."""

    def __init__(self):
        self.items: dict[str, RemoteFile] = {}
        self.children: dict[str, list[str]] = {}
        self.calls: list[tuple[str, str]] = []
        self._queued_failures: dict[tuple[str, str], list[Exception]] = {}
        self._permanent_failures: dict[tuple[str, str], Exception] = {}

    def add_folder(self, folder_id: str, name: str, parent_id: str | None = None) -> RemoteFile:
        folder = RemoteFile(
            id=folder_id,
            name=name,
            mime_type=DRIVE_FOLDER_MIME_TYPE,
            parents=(parent_id,) if parent_id else (),
        )
        self._add(folder, parent_id)
        return folder

    def add_file(
        self,
        file_id: str,
        name: str,
        parent_id: str,
        size: int | None = 200 * KIB,
        mime_type: str = "video/mp4",
    ) -> RemoteFile:
        item = RemoteFile(id=file_id, name=name, mime_type=mime_type, size=size, parents=(parent_id,))
        self._add(item, parent_id)
        return item

    def link(self, item_id: str, parent_id: str) -> None:
        """List an existing item under a second parent."""
        self.children.setdefault(parent_id, []).append(item_id)

    def _add(self, item: RemoteFile, parent_id: str | None) -> None:
        self.items[item.id] = item
        self.children.setdefault(item.id, [])
        if parent_id:
            self.link(item.id, parent_id)

    def fail(self, operation: str, item_id: str, *errors: Exception) -> None:
        """Raise the given errors on the next calls, then behave normally."""
        self._queued_failures.setdefault((operation, item_id), []).extend(errors)

    def fail_always(self, operation: str, item_id: str, error: Exception) -> None:
        self._permanent_failures[(operation, item_id)] = error

    def call_count(self, operation: str, item_id: str | None = None) -> int:
        return sum(1 for op, i in self.calls if op == operation and item_id in (None, i))

    def _maybe_fail(self, operation: str, item_id: str) -> None:
        key = (operation, item_id)
        if key in self._permanent_failures:
            raise self._permanent_failures[key]
        queued = self._queued_failures.get(key)
        if queued:
            raise queued.pop(0)

    async def list_children(
        self,
        folder_id: str,
        page_token: str | None = None,
        *,
        folders_only: bool = False,
        page_size: int = 100,
    ) -> DriveFilePage:
        self.calls.append(("list_children", folder_id))
        self._maybe_fail("list_children", folder_id)

        items = [self.items[i] for i in self.children.get(folder_id, [])]
        if folders_only:
            items = [i for i in items if i.is_folder]

        start = int(page_token) if page_token else 0
        end = start + page_size
        next_token = str(end) if end < len(items) else None
        return DriveFilePage(files=items[start:end], next_page_token=next_token)

    async def get_item(self, item_id: str) -> RemoteFile:
        self.calls.append(("get_item", item_id))
        self._maybe_fail("get_item", item_id)
        if item_id not in self.items:
            raise RemoteStoreError("File not found", error_code="notFound", status_code=404)
        return self.items[item_id]


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def fake_store():
    return FakeDriveStore()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def fake_clock():
    return FakeClock()

