"""SQLAlchemy model & helpers for transcript jobs."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from scribe.db.base import Base


class TranscriptStatus(str, Enum):
    """Lifecycle of a transcript job."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Language(str, Enum):
    ENGLISH = "en"
    MYANMAR = "my"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Transcript(Base):
    """One upload and its transcription lifecycle.

    On failure ``transcript`` holds the error explanation and ``status`` is
    authoritative over its content.
    """

    __tablename__ = "transcripts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_path = Column(String(1024), nullable=False)
    language = Column(
        SAEnum(Language, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Language.ENGLISH,
    )
    status = Column(
        SAEnum(TranscriptStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TranscriptStatus.PROCESSING,
    )
    progress = Column(Integer, nullable=False, default=0)
    transcript = Column(Text, nullable=True)
    duration = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    user = relationship("User", back_populates="transcripts")

    @property
    def status_str(self) -> str:
        return self.status.value if isinstance(self.status, TranscriptStatus) else str(self.status)

    @property
    def language_str(self) -> str:
        return self.language.value if isinstance(self.language, Language) else str(self.language)
