"""Upload audio and manage the caller's transcript jobs."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import PurePath
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.concurrency import run_in_threadpool

from scribe.config import Settings
from scribe.errors import BadRequestError
from scribe.models import Language, Transcript, User
from scribe.services.orchestrator import JobOrchestrator
from scribe.utils.storage import ALLOWED_EXTENSIONS, BlobStore, read_upload

from .deps import get_blob_store, get_current_user, get_orchestrator, get_settings

router = APIRouter()
logger = logging.getLogger(__name__)


class TranscriptInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    file_name: str
    file_size: int
    file_path: str
    language: str
    status: str
    progress: int
    transcript: Optional[str] = None
    duration: Optional[int] = None
    created_at: datetime


class MessageResponse(BaseModel):
    message: str


def _to_info(job: Transcript) -> TranscriptInfo:
    return TranscriptInfo(
        id=job.id,
        user_id=job.user_id,
        file_name=job.file_name,
        file_size=job.file_size,
        file_path=job.file_path,
        language=job.language_str,
        status=job.status_str,
        progress=job.progress,
        transcript=job.transcript,
        duration=job.duration,
        created_at=job.created_at,
    )


def _parse_language(raw: Optional[str]) -> Language:
    try:
        return Language(raw or Language.ENGLISH.value)
    except ValueError:
        allowed = ", ".join(lang.value for lang in Language)
        raise BadRequestError(f"Unsupported language '{raw}'. Allowed languages are: {allowed}.")


@router.get("", response_model=List[TranscriptInfo])
async def list_transcripts(
    user: User = Depends(get_current_user),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> List[TranscriptInfo]:
    """Return the caller's transcripts, newest first."""
    return [_to_info(job) for job in orchestrator.list(user.id)]


@router.post("", response_model=TranscriptInfo, status_code=status.HTTP_201_CREATED)
async def upload_transcript(
    file: Optional[List[UploadFile]] = File(None),
    language: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    blobs: BlobStore = Depends(get_blob_store),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> TranscriptInfo:
    """Store one audio file and start transcribing it in the background."""
    if not file:
        raise BadRequestError("No file uploaded")
    if len(file) > 1:
        raise BadRequestError("Upload exactly one file")

    upload = file[0]
    file_name = upload.filename or "unknown"
    file_ext = PurePath(file_name).suffix.lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        logger.error("Upload rejected for user %s: '%s' has an unsupported extension", user.id, file_name)
        raise BadRequestError(
            f"File '{file_name}' has an unsupported extension. Allowed extensions are: {', '.join(sorted(ALLOWED_EXTENSIONS))}."
        )
    lang = _parse_language(language)

    data = await read_upload(upload, settings.max_upload_size_bytes)
    locator = await run_in_threadpool(blobs.store, data, file_name)

    job = await orchestrator.submit(
        user_id=user.id,
        locator=locator,
        file_name=file_name,
        file_size=len(data),
        language=lang,
    )
    return _to_info(job)


@router.get("/{transcript_id}", response_model=TranscriptInfo)
async def get_transcript(
    transcript_id: str,
    user: User = Depends(get_current_user),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> TranscriptInfo:
    return _to_info(orchestrator.get(user.id, transcript_id))


@router.delete("/{transcript_id}", response_model=MessageResponse)
async def delete_transcript(
    transcript_id: str,
    user: User = Depends(get_current_user),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> MessageResponse:
    orchestrator.delete(user.id, transcript_id)
    return MessageResponse(message="Transcript deleted")
