import pytest

from recording_discovery.jobs import worker


@pytest.mark.asyncio
async def test_run_worker_runs_job(monkeypatch):
    called = {}

    async def dummy_job(root_id):
        called["root_id"] = root_id

    monkeypatch.setitem(worker.JOB_REGISTRY, "dummy", dummy_job)

    await worker.run_worker("dummy", "folder-123")

    assert called == {"root_id": "folder-123"}


@pytest.mark.asyncio
async def test_run_worker_unknown_job():
    with pytest.raises(ValueError):
        await worker.run_worker("missing")


def test_registry_exposes_scan_jobs():
    assert {"drive_scan", "domain_drive_scan", "coach_folders"} <= set(worker.JOB_REGISTRY)


def test_job_and_root_from_args():
    argv = ["Domain_Drive_Scan", "folder-123"]

    assert worker._resolve_job_name(argv) == "domain_drive_scan"
    assert worker._resolve_root_id(argv) == "folder-123"


def test_job_name_from_env(monkeypatch):
    monkeypatch.setenv("WORKER_JOB", " Coach_Folders ")

    assert worker._resolve_job_name([]) == "coach_folders"
    assert worker._resolve_root_id([]) is None
