"""Configuration sanity endpoint. Reports presence only, never values."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from scribe.config import Settings

from .deps import get_settings

router = APIRouter()


@router.get("")
async def debug_info(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "has_jwt_secret": bool(settings.JWT_SECRET),
        "blob_backend": settings.BLOB_BACKEND,
        "has_supabase_url": bool(settings.SUPABASE_URL),
        "has_openai_key": settings.openai_configured,
        "has_groq_key": settings.groq_configured,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
