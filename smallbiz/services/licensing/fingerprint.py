"""
Device Fingerprinting

Builds a short token that identifies "this device" well enough to bind a
license key to it. The token is a 32-bit rolling hash of a JSON document
of environment signals:

- user agent, language(s), platform
- screen resolution
- timezone name and offset
- CPU count and memory size
- canvas, WebGL and audio rendering tokens

CRITICAL: Every signal is weak and spoofable, and the hash is NOT
collision-resistant. The token is a bucketing aid for the license gate,
not an identity. Missing signals fall back to sentinel strings; a probe
never fails the whole fingerprint.
"""

import asyncio
import base64
import json
import locale
import math
import os
import platform
from datetime import datetime
from io import BytesIO
from typing import Callable, Optional

from PIL import Image, ImageDraw, ImageFont
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from smallbiz.config import LicenseSettings, get_settings
from smallbiz.observability import get_logger


CANVAS_UNAVAILABLE = "canvas-unavailable"
WEBGL_UNAVAILABLE = "webgl-unavailable"
AUDIO_UNAVAILABLE = "audio-unavailable"
SCREEN_UNAVAILABLE = "screen-unavailable"

CANVAS_TEXT = "SmallBiz BookKeeping Pro \U0001F510"
CANVAS_SIZE = (200, 50)
CANVAS_FONT_CANDIDATES = ("arial.ttf", "Arial.ttf", "DejaVuSans.ttf", "LiberationSans-Regular.ttf")

AUDIO_SAMPLE_RATE = 44100
AUDIO_FREQUENCY = 440.0
AUDIO_BUFFER_SIZE = 4096
AUDIO_SAMPLE_COUNT = 30

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


# =============================================================================
# ROLLING HASH
# =============================================================================

def _to_int32(value: int) -> int:
    """Wrap to a signed 32-bit integer."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def hash_string(value: str) -> str:
    """
    32-bit multiplicative rolling hash (h * 31 + c) over UTF-16 code units.

    Returns the absolute value in lowercase base 36. Characters outside
    the BMP contribute two code units (their surrogate pair).
    """
    encoded = value.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = _to_int32((h << 5) - h + code_unit)
    return _to_base36(abs(h))


# =============================================================================
# SIGNAL MODELS
# =============================================================================

class ClientHints(BaseModel):
    """
    Signals reported by a browser front end.

    Any field left as None is filled from the host environment.
    """

    user_agent: Optional[str] = None
    language: Optional[str] = None
    languages: Optional[list[str]] = None
    screen_resolution: Optional[str] = None
    webgl_renderer: Optional[str] = None
    webgl_vendor: Optional[str] = None


class DeviceSignals(BaseModel):
    """
    The document that gets hashed into the fingerprint token.

    Serialized with camelCase keys in declaration order.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_agent: str
    language: str
    languages: str
    platform: str
    screen_resolution: str
    timezone: str
    timezone_offset: int
    hardware_concurrency: int
    device_memory: int
    canvas_fingerprint: str
    webgl_fingerprint: str
    audio_fingerprint: str

    def to_json(self) -> str:
        """Compact JSON, no spaces, non-ASCII kept as is."""
        return json.dumps(
            self.model_dump(by_alias=True),
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def token(self) -> str:
        return hash_string(self.to_json())


# =============================================================================
# HOST SIGNALS
# =============================================================================

def _host_user_agent() -> str:
    return (
        f"Python/{platform.python_version()} "
        f"({platform.system()} {platform.release()}; {platform.machine()})"
    )


def _host_language() -> str:
    try:
        name = locale.getlocale()[0]
    except ValueError:
        name = None
    if not name:
        return "unknown"
    return name.replace("_", "-")


def _timezone_name_and_offset() -> tuple[str, int]:
    """
    Local timezone name and its offset in minutes.

    The offset uses the browser sign convention: minutes to ADD to local
    time to get UTC (positive west of Greenwich).
    """
    now = datetime.now().astimezone()
    name = os.environ.get("TZ") or now.tzname() or "unknown"
    utc_offset = now.utcoffset()
    minutes = int(utc_offset.total_seconds() // 60) if utc_offset is not None else 0
    return name, -minutes


def _device_memory_gb() -> int:
    """Physical memory rounded to whole GiB, 0 when it cannot be read."""
    try:
        total = os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (AttributeError, ValueError, OSError):
        return 0
    return max(0, round(total / 2 ** 30))


# =============================================================================
# RENDERING PROBES
# =============================================================================

def _load_canvas_font(size: int) -> ImageFont.ImageFont:
    for candidate in CANVAS_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default()


def canvas_fingerprint() -> str:
    """
    Render a fixed text sample and hash the PNG data URL.

    Font availability and rasterization differ between machines, which
    is what makes the output device-specific.
    """
    logger = get_logger(__name__)
    try:
        font = _load_canvas_font(14)

        image = Image.new("RGBA", CANVAS_SIZE, (0, 0, 0, 0))
        draw = ImageDraw.Draw(image)
        draw.rectangle((125, 1, 186, 20), fill="#ff6600")
        draw.text((2, 1), CANVAS_TEXT, fill="#006699", font=font)

        overlay = Image.new("RGBA", CANVAS_SIZE, (0, 0, 0, 0))
        ImageDraw.Draw(overlay).text((4, 3), CANVAS_TEXT, fill=(102, 204, 0, 178), font=font)
        image = Image.alpha_composite(image, overlay)

        buffer = BytesIO()
        image.save(buffer, format="PNG")
        data_url = "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
        return hash_string(data_url)
    except Exception as e:
        logger.debug("canvas_probe_failed", error=str(e))
        return CANVAS_UNAVAILABLE


def webgl_fingerprint(renderer: Optional[str], vendor: Optional[str]) -> str:
    """Hash the graphics renderer and vendor, when either is known."""
    if not renderer and not vendor:
        return WEBGL_UNAVAILABLE
    return hash_string(f"{renderer or 'unknown'}-{vendor or 'unknown'}")


def render_oscillator_buffer() -> list[float]:
    """One buffer of a muted 440 Hz sine oscillator."""
    step = 2 * math.pi * AUDIO_FREQUENCY / AUDIO_SAMPLE_RATE
    return [math.sin(step * i) for i in range(AUDIO_BUFFER_SIZE)]


def _format_sample(sample: float) -> str:
    if sample.is_integer():
        return str(int(sample))
    return repr(sample)


async def audio_fingerprint(
    timeout: Optional[float] = None,
    render: Callable[[], list[float]] = render_oscillator_buffer,
) -> str:
    """
    Sample one audio buffer and hash its first samples.

    The buffer is rendered off the event loop and delivered through a
    callback; this coroutine suspends until the callback fires. With
    timeout=None it waits indefinitely. On timeout or failure the
    sentinel token is returned.
    """
    logger = get_logger(__name__)
    loop = asyncio.get_running_loop()
    buffer_ready: asyncio.Future = loop.create_future()

    def on_audio_process(samples: list[float]) -> None:
        if not buffer_ready.done():
            buffer_ready.set_result(samples)

    def process() -> None:
        samples = render()
        loop.call_soon_threadsafe(on_audio_process, samples)

    def on_worker_done(worker: asyncio.Future) -> None:
        if worker.cancelled() or buffer_ready.done():
            return
        error = worker.exception()
        if error is not None:
            buffer_ready.set_exception(error)

    worker = loop.run_in_executor(None, process)
    worker.add_done_callback(on_worker_done)

    try:
        samples = await asyncio.wait_for(buffer_ready, timeout)
    except asyncio.TimeoutError:
        logger.warning("audio_probe_timed_out", timeout_seconds=timeout)
        return AUDIO_UNAVAILABLE
    except Exception as e:
        logger.debug("audio_probe_failed", error=str(e))
        return AUDIO_UNAVAILABLE

    return hash_string(",".join(_format_sample(s) for s in samples[:AUDIO_SAMPLE_COUNT]))


# =============================================================================
# FINGERPRINTER
# =============================================================================

class DeviceFingerprinter:
    """
    Collects signals and reduces them to a fingerprint token.

    Usage:
        fingerprinter = DeviceFingerprinter(client_hints=hints)
        token = await fingerprinter.generate()
    """

    def __init__(
        self,
        settings: Optional[LicenseSettings] = None,
        client_hints: Optional[ClientHints] = None,
        audio_render: Callable[[], list[float]] = render_oscillator_buffer,
    ):
        self._settings = settings or get_settings().license
        self._hints = client_hints or ClientHints()
        self._audio_render = audio_render
        self._logger = get_logger(__name__)

    async def collect_signals(self) -> DeviceSignals:
        """Gather every signal, falling back to sentinels where needed."""
        hints = self._hints
        language = hints.language or _host_language()
        languages = hints.languages if hints.languages is not None else [language]
        timezone_name, timezone_offset = _timezone_name_and_offset()

        return DeviceSignals(
            user_agent=hints.user_agent or _host_user_agent(),
            language=language,
            languages=",".join(languages),
            platform=platform.platform(),
            screen_resolution=hints.screen_resolution or SCREEN_UNAVAILABLE,
            timezone=timezone_name,
            timezone_offset=timezone_offset,
            hardware_concurrency=os.cpu_count() or 0,
            device_memory=_device_memory_gb(),
            canvas_fingerprint=canvas_fingerprint(),
            webgl_fingerprint=webgl_fingerprint(
                hints.webgl_renderer or self._settings.webgl_renderer,
                hints.webgl_vendor or self._settings.webgl_vendor,
            ),
            audio_fingerprint=await audio_fingerprint(
                timeout=self._settings.audio_timeout_seconds,
                render=self._audio_render,
            ),
        )

    async def generate(self) -> str:
        """Compute the fingerprint token for this device."""
        signals = await self.collect_signals()
        token = signals.token()
        self._logger.debug("device_fingerprint_generated", fingerprint=token)
        return token
