import struct
import threading
from dataclasses import dataclass
from typing import List

import numpy as np

from ..config import LIVE_BITS_PER_SAMPLE, LIVE_CHANNELS, LIVE_SAMPLE_RATE
from ..errors import InvalidInput

WAVE_FORMAT_PCM = 1
HEADER_SIZE = 44

# 8-bit WAV is unsigned, wider widths are signed little-endian
_SAMPLE_DTYPES = {8: np.dtype("u1"), 16: np.dtype("<i2"), 32: np.dtype("<i4")}

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def to_pcm(samples, dtype=np.int16) -> np.ndarray:
    """Integer samples cast to ``dtype``; floats and out-of-range values are InvalidInput."""
    arr = np.asarray(samples)
    target = np.dtype(dtype)
    if arr.size == 0:
        return arr.astype(target)
    if arr.dtype.kind not in "iu":
        raise InvalidInput(f"PCM samples must be integers, got {arr.dtype}")
    info = np.iinfo(target)
    low, high = int(arr.min()), int(arr.max())
    if low < info.min or high > info.max:
        raise InvalidInput(f"PCM samples {low}..{high} outside {target.name} range")
    return arr.astype(target, copy=False)


@dataclass(frozen=True)
class WavHeader:
    """Canonical 44-byte RIFF/WAVE header for linear PCM."""

    samplerate: int
    channels: int
    bits_per_sample: int
    data_size: int

    @property
    def block_align(self) -> int:
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        return self.samplerate * self.block_align

    @property
    def riff_size(self) -> int:
        return HEADER_SIZE - 8 + self.data_size

    def to_bytes(self) -> bytes:
        return _HEADER.pack(
            b"RIFF", self.riff_size, b"WAVE",
            b"fmt ", 16, WAVE_FORMAT_PCM, self.channels, self.samplerate,
            self.byte_rate, self.block_align, self.bits_per_sample,
            b"data", self.data_size,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "WavHeader":
        if len(data) < HEADER_SIZE:
            raise InvalidInput("WAV header truncated")
        (riff, _, wave, fmt, fmt_size, tag, channels, samplerate,
         _, _, bits, data_id, data_size) = _HEADER.unpack_from(data)
        if (riff, wave, fmt, data_id) != (b"RIFF", b"WAVE", b"fmt ", b"data") \
                or fmt_size != 16 or tag != WAVE_FORMAT_PCM:
            raise InvalidInput("not a canonical PCM WAV stream")
        return cls(samplerate=samplerate, channels=channels,
                   bits_per_sample=bits, data_size=data_size)


class PcmBuffer:
    """Append-only int16 capture buffer."""

    def __init__(self):
        self._lock = threading.Lock()
        self._chunks: List[np.ndarray] = []
        self._count = 0

    def append(self, chunk) -> None:
        block = to_pcm(chunk, np.int16).ravel().copy()
        with self._lock:
            self._chunks.append(block)
            self._count += block.size

    def samples(self) -> np.ndarray:
        with self._lock:
            if not self._chunks:
                return np.zeros(0, dtype=np.int16)
            return np.concatenate(self._chunks)

    def duration(self, samplerate: int) -> float:
        return self._count / float(samplerate)

    def __len__(self) -> int:
        return self._count


def encode(pcm, samplerate: int, channels: int = 1, bits_per_sample: int = 16) -> bytes:
    """
    Full WAV byte stream: 44-byte header + little-endian interleaved PCM.

    ``pcm`` is a PcmBuffer, a flat already-interleaved sequence, or a
    (frames, channels) array of integers that fit the target width.
    """
    dtype = _SAMPLE_DTYPES.get(bits_per_sample)
    if dtype is None:
        raise InvalidInput(f"unsupported bits per sample: {bits_per_sample}")
    if channels < 1 or samplerate <= 0:
        raise InvalidInput(f"bad format: {channels} channel(s) at {samplerate} Hz")

    samples = pcm.samples() if isinstance(pcm, PcmBuffer) else np.asarray(pcm)
    if samples.ndim == 2:
        if samples.shape[1] != channels:
            raise InvalidInput(f"expected {channels} channel column(s), got {samples.shape[1]}")
        samples = samples.reshape(-1)  # row-major == interleaved
    elif samples.ndim > 2:
        raise InvalidInput(f"PCM must be 1-D or 2-D, got {samples.ndim}-D")
    if samples.size % channels:
        raise InvalidInput(f"{samples.size} samples do not split into {channels} channels")

    payload = to_pcm(samples, dtype).tobytes()
    header = WavHeader(samplerate=samplerate, channels=channels,
                       bits_per_sample=bits_per_sample, data_size=len(payload))
    return header.to_bytes() + payload


def encode_live(pcm) -> bytes:
    return encode(pcm, LIVE_SAMPLE_RATE, LIVE_CHANNELS, LIVE_BITS_PER_SAMPLE)
