"""WAV packaging for raw PCM speech payloads.

Responsibilities:
- Build the canonical 44-byte RIFF/WAVE header for 16-bit PCM audio.
- Wrap raw PCM bytes into playable WAV bytes and data URIs.
"""

from __future__ import annotations

import base64
import struct

WAV_HEADER_SIZE = 44
DEFAULT_SAMPLE_RATE = 24000
DEFAULT_CHANNELS = 1
BITS_PER_SAMPLE = 16


def wav_header(
    data_length: int,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = DEFAULT_CHANNELS,
) -> bytes:
    """Return the 44-byte little-endian WAV header for `data_length` PCM bytes."""

    if data_length < 0:
        raise ValueError("`data_length` must be zero or positive.")
    block_align = channels * BITS_PER_SAMPLE // 8
    byte_rate = sample_rate * block_align
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_length,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_length,
    )


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = DEFAULT_CHANNELS,
) -> bytes:
    """Prefix raw 16-bit PCM bytes with a WAV header."""

    return wav_header(len(pcm), sample_rate=sample_rate, channels=channels) + pcm


def sample_rate_from_mime(mime_type: str, default: int = DEFAULT_SAMPLE_RATE) -> int:
    """Read the `rate=` parameter from an `audio/L16` style MIME type."""

    for parameter in mime_type.split(";")[1:]:
        key, _, value = parameter.strip().partition("=")
        if key.strip().lower() == "rate" and value.strip().isdigit():
            return int(value.strip())
    return default


def to_data_uri(payload: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 `data:` URI."""

    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Decode a base64 `data:` URI into `(mime_type, payload)`."""

    if not uri.startswith("data:") or ";base64," not in uri:
        raise ValueError("Expected a base64 `data:` URI.")
    header, encoded = uri[len("data:"):].split(";base64,", 1)
    return header, base64.b64decode(encoded)


def pcm_to_wav_data_uri(pcm: bytes, mime_type: str = "audio/L16;rate=24000") -> str:
    """Package raw PCM bytes as a `data:audio/wav` URI using the MIME sample rate."""

    wav_bytes = pcm_to_wav(pcm, sample_rate=sample_rate_from_mime(mime_type))
    return to_data_uri(wav_bytes, "audio/wav")
