# Namespace for ORM models.
from .transcript import Language, Transcript, TranscriptStatus
from .user import User

__all__ = ["Language", "Transcript", "TranscriptStatus", "User"]
