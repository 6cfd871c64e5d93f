import os
from typing import List

from pydantic import BaseModel, Field

DEFAULT_REFERENCE_PITCH = 440.0
DEFAULT_CONFIDENCE_GATE = 0.9

# Live capture (ESP32 relay or microphone) is always mono 16 kHz, 16-bit.
LIVE_SAMPLE_RATE = 16000
LIVE_CHANNELS = 1
LIVE_BITS_PER_SAMPLE = 16

ANALYSIS_BUFFER_SIZE = 2048
RECORD_DURATION_S = 5.0

RELAY_GREETING = "Welcome! You are connected."

_DEFAULT_CORS = "http://localhost:5173,http://127.0.0.1:5173"


class TuningConfig(BaseModel):
    reference_pitch: float = Field(DEFAULT_REFERENCE_PITCH, gt=0, allow_inf_nan=False)
    confidence_gate: float = Field(DEFAULT_CONFIDENCE_GATE, ge=0.0, le=1.0)


class Settings(BaseModel):
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: _DEFAULT_CORS.split(","))

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("INTONATION_CORS_ORIGINS", _DEFAULT_CORS)
        return cls(
            log_level=os.environ.get("INTONATION_LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
