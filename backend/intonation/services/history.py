import threading
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from ..errors import InvalidInput
from .analyzer import ConfidentFrame, FrameResult, display_note


@dataclass(frozen=True)
class HistorySummary:
    frames: int
    confident_frames: int
    confident_ratio: float
    mean_accuracy: Optional[float]
    mean_abs_cents: Optional[float]


@dataclass(frozen=True)
class HistorySeries:
    """Read-only, time-ordered frame results of one session."""

    frames: Tuple[FrameResult, ...] = ()
    samplerate: Optional[int] = None
    reference_pitch: Optional[float] = None
    source: str = "live"

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self):
        return iter(self.frames)

    def confident(self) -> Tuple[ConfidentFrame, ...]:
        return tuple(f for f in self.frames if f.is_confident)

    def summary(self) -> HistorySummary:
        hits = self.confident()
        total = len(self.frames)
        if not hits:
            return HistorySummary(total, 0, 0.0, None, None)
        return HistorySummary(
            frames=total,
            confident_frames=len(hits),
            confident_ratio=len(hits) / total,
            mean_accuracy=sum(f.accuracy for f in hits) / len(hits),
            mean_abs_cents=sum(abs(f.cents) for f in hits) / len(hits),
        )


def format_line(frame: FrameResult) -> str:
    if not frame.is_confident:
        return f"Time: {frame.time_offset:.2f}s | Note: {display_note(frame)}"
    return (
        f"Time: {frame.time_offset:.2f}s | Freq: {frame.display_frequency}Hz | "
        f"Note: {frame.note} | Cents: {frame.display_cents} | "
        f"Accuracy: {frame.display_accuracy}%"
    )


class HistoryBuffer:
    """
    Accumulates frame results for the current session.

    Appending after ``finalize()`` keeps extending the same session; series
    already handed out are snapshots and never change.
    """

    def __init__(self, samplerate: Optional[int] = None,
                 reference_pitch: Optional[float] = None, source: str = "live"):
        self._lock = threading.Lock()
        self._frames: List[FrameResult] = []
        self.samplerate = samplerate
        self.reference_pitch = reference_pitch
        self.source = source
        self.finalized = False

    def start(self, samplerate: Optional[int] = None,
              reference_pitch: Optional[float] = None, source: Optional[str] = None):
        with self._lock:
            self._frames = []
            self.finalized = False
            if samplerate is not None:
                self.samplerate = samplerate
            if reference_pitch is not None:
                self.reference_pitch = reference_pitch
            if source is not None:
                self.source = source

    def append(self, frame: FrameResult, time_offset: float) -> FrameResult:
        if time_offset < 0:
            raise InvalidInput(f"time offset must be >= 0, got {time_offset}")
        stamped = replace(frame, time_offset=float(time_offset))
        with self._lock:
            self._frames.append(stamped)
        return stamped

    def finalize(self) -> HistorySeries:
        with self._lock:
            self.finalized = True
            return HistorySeries(
                frames=tuple(self._frames),
                samplerate=self.samplerate,
                reference_pitch=self.reference_pitch,
                source=self.source,
            )

    def __len__(self) -> int:
        return len(self._frames)
