"""Row-level access to users and transcript jobs.

Stores open a short-lived session per call.  Objects returned are detached
(``expire_on_commit=False``) so callers can read them after the session is
closed.  Every transcript read or delete that a user can trigger filters on
``user_id``; a foreign id looks exactly like a missing one.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from scribe.db.database import Database
from scribe.errors import BadRequestError
from scribe.models import Language, Transcript, TranscriptStatus, User

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, name: str, email: str, password_hash: str) -> User:
        with self._db.session() as session:
            user = User(name=name, email=email, password_hash=password_hash)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.info("Registration raced on an existing email")
                raise BadRequestError("Email already registered")
            session.refresh(user)
            logger.info("Created user %s", user.id)
            return user

    def get(self, user_id: str) -> Optional[User]:
        with self._db.session() as session:
            return session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._db.session() as session:
            return session.query(User).filter(User.email == email).first()


class TranscriptStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    def create(
        self,
        user_id: str,
        file_name: str,
        file_size: int,
        file_path: str,
        language: Language,
    ) -> Transcript:
        with self._db.session() as session:
            job = Transcript(
                user_id=user_id,
                file_name=file_name,
                file_size=file_size,
                file_path=file_path,
                language=language,
                status=TranscriptStatus.PROCESSING,
                progress=0,
            )
            session.add(job)
            session.commit()
            session.refresh(job)
            return job

    def get(self, transcript_id: str) -> Optional[Transcript]:
        """Unscoped lookup, only for the background pipeline."""
        with self._db.session() as session:
            return session.get(Transcript, transcript_id)

    def list_for_user(self, user_id: str) -> List[Transcript]:
        with self._db.session() as session:
            return (
                session.query(Transcript)
                .filter(Transcript.user_id == user_id)
                .order_by(Transcript.created_at.desc())
                .all()
            )

    def get_for_user(self, user_id: str, transcript_id: str) -> Optional[Transcript]:
        with self._db.session() as session:
            return (
                session.query(Transcript)
                .filter(Transcript.id == transcript_id, Transcript.user_id == user_id)
                .first()
            )

    def delete_for_user(self, user_id: str, transcript_id: str) -> bool:
        with self._db.session() as session:
            job = (
                session.query(Transcript)
                .filter(Transcript.id == transcript_id, Transcript.user_id == user_id)
                .first()
            )
            if job is None:
                return False
            session.delete(job)
            session.commit()
            logger.info("Deleted transcript %s for user %s", transcript_id, user_id)
            return True

    def set_progress(self, transcript_id: str, progress: int) -> bool:
        """Raise the progress of a processing job. Returns False if the row is gone."""
        with self._db.session() as session:
            job = session.get(Transcript, transcript_id)
            if job is None:
                logger.warning("Transcript %s vanished before progress %d could be written", transcript_id, progress)
                return False
            if job.status == TranscriptStatus.PROCESSING and progress > job.progress:
                job.progress = progress
                session.commit()
            return True

    def complete(self, transcript_id: str, text: str, duration: Optional[int]) -> bool:
        with self._db.session() as session:
            job = session.get(Transcript, transcript_id)
            if job is None:
                logger.warning("Transcript %s vanished before it could be completed", transcript_id)
                return False
            job.status = TranscriptStatus.COMPLETED
            job.progress = 100
            job.transcript = text
            job.duration = duration
            session.commit()
            return True

    def fail(self, transcript_id: str, message: str) -> bool:
        with self._db.session() as session:
            job = session.get(Transcript, transcript_id)
            if job is None:
                logger.warning("Transcript %s vanished before its failure could be recorded", transcript_id)
                return False
            job.status = TranscriptStatus.FAILED
            job.progress = 0
            job.transcript = message
            session.commit()
            return True
