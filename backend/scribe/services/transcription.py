"""Speech-to-text through hosted Whisper APIs.

The client walks an ordered list of provider attempts.  Each attempt is
wrapped into a :class:`ProviderResult`; the first success wins.  When no
provider is configured, or every attempt failed, a localized demo-mode
placeholder is returned instead of raising.
"""

from __future__ import annotations

import logging
import re
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, Dict, FrozenSet, Iterable, List, Optional
from urllib.parse import unquote, urlparse

import httpx

from scribe.config import Settings
from scribe.models import Language
from scribe.utils.storage import audio_content_type

logger = logging.getLogger(__name__)

OPENAI_TRANSCRIPTIONS_URL = "https://api.openai.com/v1/audio/transcriptions"
GROQ_TRANSCRIPTIONS_URL = "https://api.groq.com/openai/v1/audio/transcriptions"

# 128 kbps is assumed for every upload; good enough for a duration hint
BYTES_PER_SECOND = 128000 // 8

MYANMAR_SCRIPT = re.compile("[\u1000-\u109F]")
THAI_SCRIPT = re.compile("[\u0E00-\u0E7F]")

OPENAI_PROMPTS = {
    Language.MYANMAR: "မင်္ဂလာပါ။ ဒါကမြန်မာစကားဖြစ်ပါတယ်။",
}
GROQ_PROMPTS = {
    Language.MYANMAR: "မင်္ဂလာပါ။ ဒါကမြန်မာဘာသာစကားဖြစ်ပါတယ်။ ကျွန်တော်မြန်မာလိုပြောနေပါတယ်။",
    Language.ENGLISH: "This is spoken in English.",
}


def estimate_duration(size_bytes: int) -> int:
    """Seconds of audio, assuming a 128 kbps stream."""
    return round(size_bytes / BYTES_PER_SECOND)


def is_remote(locator: str) -> bool:
    return urlparse(locator).scheme in ("http", "https")


@dataclass(frozen=True)
class ProviderResult:
    provider: str
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.text is not None


class WhisperProvider:
    """One OpenAI-compatible ``/audio/transcriptions`` endpoint."""

    def __init__(
        self,
        name: str,
        api_key: str,
        url: str,
        model: str,
        prompts: Dict[Language, str],
        languages: Optional[Iterable[Language]] = None,
        temperature: Optional[float] = None,
        timeout: float = 60.0,
    ) -> None:
        self.name = name
        self.url = url
        self.model = model
        self.prompts = prompts
        self.languages: FrozenSet[Language] = frozenset(languages or Language)
        self.temperature = temperature
        self.timeout = timeout
        self._api_key = api_key

    def supports(self, language: Language) -> bool:
        return language in self.languages

    def form_fields(self, language: Language) -> Dict[str, str]:
        fields = {
            "model": self.model,
            "language": language.value,
            "response_format": "json",
        }
        prompt = self.prompts.get(language)
        if prompt:
            fields["prompt"] = prompt
        if self.temperature is not None:
            fields["temperature"] = str(self.temperature)
        return fields

    async def transcribe(self, audio_path: Path, language: Language) -> ProviderResult:
        logger.info("Transcribing %s with %s (%s, language=%s)", audio_path.name, self.name, self.model, language.value)
        try:
            with audio_path.open("rb") as audio:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.url,
                        headers={"Authorization": f"Bearer {self._api_key}"},
                        data=self.form_fields(language),
                        files={"file": (audio_path.name, audio, audio_content_type(audio_path.name))},
                    )
                    response.raise_for_status()
                    payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("%s returned HTTP %s: %s", self.name, exc.response.status_code, exc.response.text[:500])
            return ProviderResult(self.name, error=f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.error("%s request failed: %s", self.name, exc)
            return ProviderResult(self.name, error=str(exc) or exc.__class__.__name__)
        except (OSError, ValueError) as exc:
            logger.error("%s attempt failed: %s", self.name, exc)
            return ProviderResult(self.name, error=str(exc))

        text = (payload.get("text") or "").strip() if isinstance(payload, dict) else ""
        if not text:
            logger.error("%s returned no text", self.name)
            return ProviderResult(self.name, error="No text in response")
        logger.info("%s succeeded, %d chars", self.name, len(text))
        return ProviderResult(self.name, text=text)


def build_providers(settings: Settings) -> List[WhisperProvider]:
    """Providers in attempt order. Unconfigured ones are left out."""
    providers: List[WhisperProvider] = []
    if settings.openai_configured:
        providers.append(
            WhisperProvider(
                name="openai",
                api_key=settings.OPENAI_API_KEY,
                url=OPENAI_TRANSCRIPTIONS_URL,
                model="whisper-1",
                prompts=OPENAI_PROMPTS,
                languages=[Language.MYANMAR],
                timeout=settings.TRANSCRIPTION_TIMEOUT,
            )
        )
    if settings.groq_configured:
        providers.append(
            WhisperProvider(
                name="groq",
                api_key=settings.GROQ_API_KEY,
                url=GROQ_TRANSCRIPTIONS_URL,
                model="whisper-large-v3",
                prompts=GROQ_PROMPTS,
                temperature=0,
                timeout=settings.TRANSCRIPTION_TIMEOUT,
            )
        )
    return providers


def demo_transcription(file_name: str, size_bytes: int, language: Language) -> str:
    """Placeholder shown when no provider produced text. Never a real transcript."""
    size_kb = round(size_bytes / 1024)
    duration = estimate_duration(size_bytes)

    if language == Language.MYANMAR:
        return f"""[သရုပ်ပြမုဒ် - API Key လိုအပ်သည်]

{file_name}
{size_kb} KB | ~{duration} စက္ကန့်

မြန်မာဘာသာ မှတ်တမ်းတင်ရန်:

Groq (အခမဲ့):
   - အလုပ်လုပ်သည်
   - တခါတရံ ထိုင်းစာလုံးများ ရောနှောနိုင်သည်
   - ရှင်းလင်းစွာပြောဆိုပါ

OpenAI ($0.006/မိနစ်):
   - အကောင်းဆုံး တိကျမှု
   - မြန်မာစာလုံးများ ပြည့်စုံစွာ ရရှိမည်
   - platform.openai.com တွင် key ရယူပါ"""

    return f"""[DEMO MODE - API Key Required]

{file_name}
{size_kb} KB | ~{duration}s

Configure a transcription provider:

Groq (FREE):
   - Set GROQ_API_KEY
   - Sometimes mixes Thai characters into Myanmar output
   - Speak clearly for best results

OpenAI ($0.006/min):
   - Set OPENAI_API_KEY
   - Best accuracy for Myanmar script"""


def locator_name(locator: str) -> str:
    """Basename of a local path or of a URL path, percent-decoded."""
    if is_remote(locator):
        return unquote(PurePosixPath(urlparse(locator).path).name)
    return Path(locator).name


@asynccontextmanager
async def materialize(locator: str, timeout: float = 60.0) -> AsyncIterator[Path]:
    """Yield a local path for ``locator``, downloading remote audio to a temp dir.

    The temporary copy is removed however the block exits.
    """
    if not is_remote(locator):
        yield Path(locator)
        return

    name = locator_name(locator) or "audio"
    with tempfile.TemporaryDirectory(prefix="scribe-") as tmp_dir:
        local_path = Path(tmp_dir) / name
        logger.info("Downloading %s to %s", locator, local_path)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(locator)
            response.raise_for_status()
        local_path.write_bytes(response.content)
        yield local_path


def _inspect_script(text: str) -> None:
    has_myanmar = bool(MYANMAR_SCRIPT.search(text))
    has_thai = bool(THAI_SCRIPT.search(text))
    logger.info("Script check - Myanmar: %s, Thai: %s", has_myanmar, has_thai)
    if has_myanmar and has_thai:
        logger.warning("Mixed Myanmar/Thai script detected in transcript")


class TranscriptionClient:
    """Ordered provider fallback, ending in the demo placeholder."""

    def __init__(self, providers: List[WhisperProvider], download_timeout: float = 60.0) -> None:
        self.providers = list(providers)
        self.download_timeout = download_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranscriptionClient":
        return cls(build_providers(settings), download_timeout=settings.TRANSCRIPTION_TIMEOUT)

    def attempts_for(self, language: Language) -> List[WhisperProvider]:
        return [p for p in self.providers if p.supports(language)]

    async def transcribe(self, locator: str, language: Language, size_hint: Optional[int] = None) -> str:
        """Text for the audio at ``locator``; never raises when no provider succeeds.

        ``size_hint`` is the stored byte size, used for the placeholder when the
        audio is never fetched.
        """
        language = Language(language)
        attempts = self.attempts_for(language)
        if attempts:
            try:
                async with materialize(locator, timeout=self.download_timeout) as audio_path:
                    for provider in attempts:
                        result = await provider.transcribe(audio_path, language)
                        if result.ok:
                            if language == Language.MYANMAR:
                                _inspect_script(result.text)
                            return result.text
                        logger.warning("Provider %s failed (%s), falling back", result.provider, result.error)
            except httpx.HTTPError as exc:
                logger.error("Could not fetch audio from %s: %s", locator, exc)

        name = locator_name(locator)
        logger.warning("No transcription provider succeeded for %s, returning demo text", name)
        return demo_transcription(name, self._size_of(locator, size_hint), language)

    @staticmethod
    def _size_of(locator: str, size_hint: Optional[int]) -> int:
        if size_hint is not None:
            return size_hint
        if not is_remote(locator):
            path = Path(locator)
            if path.exists():
                return path.stat().st_size
        return 0
