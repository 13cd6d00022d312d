import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from scribe.errors import NotFoundError
from scribe.models import Language, TranscriptStatus
from scribe.services.orchestrator import JobOrchestrator
from scribe.workers.tasks import TaskRegistry


@pytest.fixture
def owner(users):
    return users.create("A", "a@x.com", "hash")


@pytest.fixture
def transcriber():
    mock = MagicMock()
    mock.transcribe = AsyncMock(return_value="hello world")
    return mock


@pytest.fixture
def orchestrator(transcripts, transcriber):
    return JobOrchestrator(transcripts, transcriber, registry=TaskRegistry())


async def _submit(orchestrator, owner, size=32000, language=Language.ENGLISH):
    return await orchestrator.submit(
        user_id=owner.id,
        locator="/data/uploads/1-talk.mp3",
        file_name="talk.mp3",
        file_size=size,
        language=language,
    )


@pytest.mark.asyncio
async def test_submit_returns_processing_job_immediately(orchestrator, owner):
    job = await _submit(orchestrator, owner, size=10, language=Language.MYANMAR)

    assert job.status == TranscriptStatus.PROCESSING
    assert job.progress == 0
    assert job.file_size == 10
    assert job.language == Language.MYANMAR
    assert job.id in orchestrator.registry
    await orchestrator.wait(job.id)


@pytest.mark.asyncio
async def test_advance_completes_job(orchestrator, owner, transcriber):
    job = await _submit(orchestrator, owner)
    await orchestrator.wait(job.id)

    done = orchestrator.get(owner.id, job.id)
    assert done.status == TranscriptStatus.COMPLETED
    assert done.progress == 100
    assert done.transcript == "hello world"
    assert done.duration == 2
    transcriber.transcribe.assert_awaited_once_with(
        "/data/uploads/1-talk.mp3", Language.ENGLISH, size_hint=32000
    )
    assert job.id not in orchestrator.registry


@pytest.mark.asyncio
async def test_progress_checkpoints_are_monotonic(transcripts, transcriber, owner):
    seen = []
    real_set_progress = transcripts.set_progress

    def spy(job_id, value):
        seen.append(value)
        return real_set_progress(job_id, value)

    transcripts.set_progress = spy
    orchestrator = JobOrchestrator(transcripts, transcriber)
    job = await _submit(orchestrator, owner)
    await orchestrator.wait(job.id)

    assert seen == [10, 30, 90]
    assert seen == sorted(seen)
    assert transcripts.get(job.id).progress == 100


@pytest.mark.asyncio
async def test_transcriber_error_fails_job(orchestrator, owner, transcriber):
    transcriber.transcribe.side_effect = RuntimeError("disk on fire")

    job = await _submit(orchestrator, owner)
    await orchestrator.wait(job.id)

    failed = orchestrator.get(owner.id, job.id)
    assert failed.status == TranscriptStatus.FAILED
    assert failed.progress == 0
    assert failed.transcript == "Error: disk on fire"


@pytest.mark.asyncio
async def test_delete_during_transcription_is_tolerated(orchestrator, owner, transcriber):
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_transcribe(locator, language, size_hint=None):
        started.set()
        await release.wait()
        return "late text"

    transcriber.transcribe.side_effect = slow_transcribe
    job = await _submit(orchestrator, owner)
    await started.wait()

    orchestrator.delete(owner.id, job.id)
    release.set()
    await orchestrator.wait(job.id)

    assert orchestrator.list(owner.id) == []
    with pytest.raises(NotFoundError):
        orchestrator.get(owner.id, job.id)


@pytest.mark.asyncio
async def test_delete_does_not_cancel_by_default(orchestrator, owner, transcriber):
    release = asyncio.Event()

    async def slow_transcribe(locator, language, size_hint=None):
        await release.wait()
        return "text"

    transcriber.transcribe.side_effect = slow_transcribe
    job = await _submit(orchestrator, owner)
    await asyncio.sleep(0)

    orchestrator.delete(owner.id, job.id)
    task = orchestrator.registry.get(job.id)
    assert task is not None and not task.cancelled()

    release.set()
    await orchestrator.wait(job.id)
    assert not task.cancelled()


@pytest.mark.asyncio
async def test_cancel_on_delete_stops_in_flight_work(transcripts, transcriber, owner):
    started = asyncio.Event()

    async def never_finishes(locator, language, size_hint=None):
        started.set()
        await asyncio.Event().wait()

    transcriber.transcribe.side_effect = never_finishes
    orchestrator = JobOrchestrator(transcripts, transcriber, cancel_on_delete=True)
    job = await _submit(orchestrator, owner)
    await started.wait()
    task = orchestrator.registry.get(job.id)

    orchestrator.delete(owner.id, job.id)
    await orchestrator.wait(job.id)

    assert task.cancelled()
    assert job.id not in orchestrator.registry


@pytest.mark.asyncio
async def test_shutdown_marks_in_flight_job_failed(orchestrator, owner, transcriber):
    started = asyncio.Event()

    async def never_finishes(locator, language, size_hint=None):
        started.set()
        await asyncio.Event().wait()

    transcriber.transcribe.side_effect = never_finishes
    job = await _submit(orchestrator, owner)
    await started.wait()
    task = orchestrator.registry.get(job.id)

    await orchestrator.registry.shutdown()

    assert task.cancelled()
    interrupted = orchestrator.get(owner.id, job.id)
    assert interrupted.status == TranscriptStatus.FAILED
    assert interrupted.progress == 0
    assert interrupted.transcript == "Error: processing was interrupted"


@pytest.mark.asyncio
async def test_advance_for_unknown_job_is_a_no_op(orchestrator, transcriber):
    await orchestrator.advance("does-not-exist")
    transcriber.transcribe.assert_not_called()


@pytest.mark.asyncio
async def test_foreign_job_is_not_found(orchestrator, owner, users):
    stranger = users.create("B", "b@x.com", "hash")
    job = await _submit(orchestrator, owner)
    await orchestrator.wait(job.id)

    with pytest.raises(NotFoundError):
        orchestrator.get(stranger.id, job.id)
    with pytest.raises(NotFoundError):
        orchestrator.delete(stranger.id, job.id)
    assert orchestrator.list(stranger.id) == []
    assert [j.id for j in orchestrator.list(owner.id)] == [job.id]
