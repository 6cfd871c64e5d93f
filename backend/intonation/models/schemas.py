from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..config import RECORD_DURATION_S
from ..services.analyzer import FrameResult, display_note
from ..services.history import HistorySeries, format_line


class ScaleEntryOut(BaseModel):
    label: str
    frequency: float


class ScaleOut(BaseModel):
    reference_pitch: float
    entries: List[ScaleEntryOut]


class FrameRequest(BaseModel):
    samples: List[Union[int, float]]
    samplerate: int = Field(..., gt=0)
    # int16 PCM unless told otherwise
    encoding: Literal["int16", "float32"] = "int16"


class FrameOut(BaseModel):
    t: float
    confident: bool
    confidence: float
    pitch_hz: Optional[float] = None
    note: str
    target_hz: Optional[float] = None
    cents: Optional[float] = None
    accuracy: Optional[int] = None
    # unrounded values
    raw_pitch_hz: Optional[float] = None
    raw_cents: Optional[float] = None
    raw_accuracy: Optional[float] = None


class HistorySummaryOut(BaseModel):
    frames: int
    confident_frames: int
    confident_ratio: float
    mean_accuracy: Optional[float] = None
    mean_abs_cents: Optional[float] = None


class HistoryOut(BaseModel):
    source: str
    samplerate: Optional[int] = None
    reference_pitch: Optional[float] = None
    frames: List[FrameOut]
    summary: HistorySummaryOut
    log: List[str]


class SessionStartRequest(BaseModel):
    source: Literal["relay", "microphone"] = "relay"
    duration: float = Field(RECORD_DURATION_S, gt=0, le=600)
    device_id: Optional[int] = None


class SessionStatus(BaseModel):
    recording: bool
    source: Optional[str] = None
    seconds: float
    frames: int


def frame_out(frame: FrameResult) -> FrameOut:
    return FrameOut(
        t=round(frame.time_offset, 2),
        confident=frame.is_confident,
        confidence=frame.confidence,
        pitch_hz=frame.display_frequency,
        note=display_note(frame),
        target_hz=frame.matched_frequency,
        cents=frame.display_cents,
        accuracy=frame.display_accuracy,
        raw_pitch_hz=frame.frequency,
        raw_cents=frame.cents,
        raw_accuracy=frame.accuracy,
    )


def history_out(series: HistorySeries) -> HistoryOut:
    s = series.summary()
    return HistoryOut(
        source=series.source,
        samplerate=series.samplerate,
        reference_pitch=series.reference_pitch,
        frames=[frame_out(f) for f in series],
        summary=HistorySummaryOut(
            frames=s.frames,
            confident_frames=s.confident_frames,
            confident_ratio=s.confident_ratio,
            mean_accuracy=s.mean_accuracy,
            mean_abs_cents=s.mean_abs_cents,
        ),
        log=[format_line(f) for f in series.confident()],
    )
