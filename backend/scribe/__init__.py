"""Scribe – audio upload & transcription backend."""

__version__ = "0.1.0"
