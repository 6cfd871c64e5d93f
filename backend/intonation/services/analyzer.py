import logging
import math
from dataclasses import dataclass, replace
from typing import Iterator, Optional, Union

import numpy as np

from ..config import DEFAULT_CONFIDENCE_GATE
from ..errors import InvalidInput
from .pitch import PitchEstimator
from .quantize import nearest
from .scale import ScaleTable

logger = logging.getLogger(__name__)

NO_NOTE = "N/A"


@dataclass(frozen=True)
class ConfidentFrame:
    frequency: float
    note: str
    matched_frequency: float
    cents: float
    accuracy: float
    confidence: float
    time_offset: float = 0.0

    is_confident = True

    @property
    def display_frequency(self) -> float:
        return round(self.frequency, 1)

    @property
    def display_cents(self) -> float:
        return round(self.cents, 1)

    @property
    def display_accuracy(self) -> int:
        return int(round(self.accuracy))


@dataclass(frozen=True)
class LowConfidenceFrame:
    """No usable pitch in this window. A gap in the series, not a zero."""

    confidence: float
    time_offset: float = 0.0

    is_confident = False
    frequency = None
    note = None
    matched_frequency = None
    cents = None
    accuracy = None
    display_frequency = None
    display_cents = None
    display_accuracy = None


FrameResult = Union[ConfidentFrame, LowConfidenceFrame]


def display_note(frame: FrameResult) -> str:
    return frame.note if frame.is_confident else NO_NOTE


def cents_between(frequency: float, reference: float) -> float:
    return 1200.0 * math.log2(frequency / reference)


def accuracy_from_cents(cents: float) -> float:
    # 50 cents off (half a semitone) already scores 0
    return max(0.0, 100.0 - 2.0 * abs(cents))


def normalize(samples) -> np.ndarray:
    """Integer PCM -> float32 in [-1, 1]; float input passes through."""
    x = np.asarray(samples)
    if x.dtype.kind == "i":
        scale = float(2 ** (8 * x.dtype.itemsize - 1))
        return (x.astype(np.float32) / scale).astype(np.float32)
    if x.dtype.kind == "u":
        half = float(2 ** (8 * x.dtype.itemsize - 1))
        return ((x.astype(np.float32) - half) / half).astype(np.float32)
    if x.dtype.kind == "f":
        return x.astype(np.float32)
    raise InvalidInput(f"unsupported sample type {x.dtype}")


def _usable(value: float) -> bool:
    return value is not None and math.isfinite(value)


class FrameAnalyzer:
    def __init__(self, estimator: PitchEstimator):
        self.estimator = estimator

    @property
    def window_size(self) -> int:
        return self.estimator.window_size

    def analyze(self, samples, samplerate: int, table: ScaleTable,
                confidence_gate: float = DEFAULT_CONFIDENCE_GATE) -> FrameResult:
        window = normalize(samples)
        if window.ndim != 1 or window.size != self.window_size:
            raise InvalidInput(
                f"analysis window must be {self.window_size} mono samples, got shape {window.shape}"
            )

        try:
            freq, confidence = self.estimator.estimate(window, samplerate)
            freq, confidence = float(freq), float(confidence)
        except Exception:
            logger.warning("pitch estimator failed, frame marked low-confidence", exc_info=True)
            return LowConfidenceFrame(confidence=0.0)

        if not _usable(confidence):
            logger.debug("non-finite confidence %r", confidence)
            return LowConfidenceFrame(confidence=0.0)
        if confidence <= confidence_gate:
            return LowConfidenceFrame(confidence=confidence)
        if not _usable(freq) or freq <= 0:
            logger.debug("confident frame with unusable frequency %r", freq)
            return LowConfidenceFrame(confidence=confidence)

        match = nearest(freq, table)
        cents = cents_between(freq, match.frequency)
        return ConfidentFrame(
            frequency=freq,
            note=match.label,
            matched_frequency=match.frequency,
            cents=cents,
            accuracy=accuracy_from_cents(cents),
            confidence=confidence,
        )

    def analyze_signal(self, samples, samplerate: int, table: ScaleTable,
                       confidence_gate: float = DEFAULT_CONFIDENCE_GATE,
                       hop: Optional[int] = None) -> Iterator[FrameResult]:
        """
        Walk a whole signal in consecutive windows (non-overlapping by default)
        and yield one result per full window, stamped with its start time.
        A trailing partial window is skipped.
        """
        x = normalize(samples)
        n = self.window_size
        step = hop or n
        for start in range(0, x.size - n + 1, step):
            frame = self.analyze(x[start:start + n], samplerate, table, confidence_gate)
            yield replace(frame, time_offset=start / float(samplerate))

