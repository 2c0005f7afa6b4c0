import pytest

from recording_discovery.features.session_discovery.matching.service import (
    SessionMatchingEngine,
    summarize,
)
from recording_discovery.features.session_discovery.scanning.scanner import (
    HierarchicalScanner,
    ScanOptions,
)
from recording_discovery.services.drive.remote_store import RemoteStoreError
from recording_discovery.services.drive.retrying_accessor import (
    RetryingRemoteAccessor,
    RetryPolicy,
)


@pytest.fixture
def pipeline(fake_store, sleep_recorder):
    accessor = RetryingRemoteAccessor(fake_store, RetryPolicy(), cache_ttl=300, sleep=sleep_recorder)
    return HierarchicalScanner(accessor, sleep=sleep_recorder), SessionMatchingEngine(0.7, 20)


@pytest.mark.asyncio
async def test_recording_pair_becomes_one_valid_session(pipeline, fake_store):
    scanner, engine = pipeline
    fake_store.add_folder("root", "Coaching")
    fake_store.add_file("mp4", "2024-03-01_Coaching_Alex-Sam_Week5.mp4", "root")
    fake_store.add_file("vtt", "2024-03-01_Coaching_Alex-Sam_Week5.vtt", "root", mime_type="text/vtt")
    fake_store.add_file("memo", "unrelated_memo.pdf", "root", mime_type="application/pdf")

    files = await scanner.scan("root", ScanOptions())
    sessions = engine.match(files)
    result = engine.validate(sessions)

    assert [f.id for f in files] == ["mp4", "vtt"]
    assert len(result.valid) == 1
    assert result.invalid == []

    session = result.valid[0]
    assert session.date.raw == "2024-03-01"
    assert set(session.participants) == {"Alex", "Sam"}
    assert session.week.token == "5"
    assert session.has_video and session.has_transcript
    assert summarize(result.valid).complete_recordings == 1


@pytest.mark.asyncio
async def test_rate_limited_tree_still_yields_sessions(pipeline, fake_store, sleep_recorder):
    scanner, engine = pipeline
    fake_store.add_folder("root", "Coaching")
    fake_store.add_folder("w1", "2024-03-01 Week 1 with Alex", "root")
    fake_store.add_file("w1-video", "zoom_0.mp4", "w1")
    fake_store.add_file("w1-audio", "zoom_0.m4a", "w1")
    fake_store.add_folder("locked", "Private", "root")
    fake_store.fail(
        "list_children",
        "w1",
        RemoteStoreError("Rate Limit Exceeded", error_code="rateLimitExceeded", status_code=403),
    )
    fake_store.fail_always(
        "list_children",
        "locked",
        RemoteStoreError("Forbidden", error_code="forbidden", status_code=403),
    )

    outcome = await scanner.scan_tree("root", ScanOptions())
    sessions = engine.validate(engine.match(outcome.files)).valid

    assert [f.folder_id for f in outcome.failures] == ["locked"]
    assert 1.0 in sleep_recorder.delays
    assert len(sessions) == 1
    assert {f.id for f in sessions[0].files} == {"w1-video", "w1-audio"}
    assert sessions[0].participants == ["Alex"]
