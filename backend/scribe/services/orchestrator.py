"""Upload-to-transcript pipeline.

``submit`` records the job and returns at once; ``advance`` runs detached
and walks the job through fixed progress checkpoints::

    processing(0) -> 10 -> 30 -> 90 -> completed(100)

Any exception along the way, cancellation included, lands the job in
``failed`` with progress 0 and the error text in ``transcript``.  If the row
disappears (deleted by its owner) advancement stops at the next checkpoint.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from scribe.db.stores import TranscriptStore
from scribe.errors import NotFoundError
from scribe.models import Language, Transcript
from scribe.services.transcription import TranscriptionClient, estimate_duration
from scribe.workers.tasks import TaskRegistry

logger = logging.getLogger(__name__)

CHECKPOINT_STARTED = 10
CHECKPOINT_TRANSCRIBING = 30
CHECKPOINT_TRANSCRIBED = 90


class JobOrchestrator:
    def __init__(
        self,
        transcripts: TranscriptStore,
        transcriber: TranscriptionClient,
        registry: Optional[TaskRegistry] = None,
        cancel_on_delete: bool = False,
    ) -> None:
        self.transcripts = transcripts
        self.transcriber = transcriber
        self.registry = registry or TaskRegistry()
        self.cancel_on_delete = cancel_on_delete

    async def submit(
        self,
        user_id: str,
        locator: str,
        file_name: str,
        file_size: int,
        language: Language,
    ) -> Transcript:
        job = self.transcripts.create(
            user_id=user_id,
            file_name=file_name,
            file_size=file_size,
            file_path=locator,
            language=language,
        )
        logger.info("Transcript %s created for user %s (%s, %d bytes)", job.id, user_id, file_name, file_size)
        self.registry.spawn(job.id, self.advance(job.id))
        return job

    async def advance(self, job_id: str) -> None:
        job = self.transcripts.get(job_id)
        if job is None:
            logger.warning("Transcript %s not found, nothing to process", job_id)
            return

        try:
            if not self.transcripts.set_progress(job_id, CHECKPOINT_STARTED):
                return
            logger.info("Starting transcription for %s", job_id)

            if not self.transcripts.set_progress(job_id, CHECKPOINT_TRANSCRIBING):
                return
            text = await self.transcriber.transcribe(
                job.file_path, Language(job.language), size_hint=job.file_size
            )
            logger.info("Transcription completed for %s", job_id)

            if not self.transcripts.set_progress(job_id, CHECKPOINT_TRANSCRIBED):
                return
            self.transcripts.complete(job_id, text, estimate_duration(job.file_size))
        except asyncio.CancelledError:
            logger.warning("Processing transcript %s was interrupted", job_id)
            self.transcripts.fail(job_id, "Error: processing was interrupted")
            raise
        except Exception as exc:
            logger.error("Processing transcript %s failed: %s", job_id, exc, exc_info=True)
            self.transcripts.fail(job_id, f"Error: {exc}")

    async def wait(self, job_id: str) -> None:
        """Block until the background task for ``job_id`` (if any) has finished."""
        await self.registry.wait(job_id)

    def list(self, user_id: str) -> List[Transcript]:
        return self.transcripts.list_for_user(user_id)

    def get(self, user_id: str, job_id: str) -> Transcript:
        job = self.transcripts.get_for_user(user_id, job_id)
        if job is None:
            raise NotFoundError("Transcript not found")
        return job

    def delete(self, user_id: str, job_id: str) -> None:
        # The stored blob is kept; only the record goes away.
        if not self.transcripts.delete_for_user(user_id, job_id):
            raise NotFoundError("Transcript not found")
        if self.cancel_on_delete:
            self.registry.cancel(job_id)
