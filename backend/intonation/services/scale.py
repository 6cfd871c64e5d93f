import math
import threading
from dataclasses import dataclass
from functools import cached_property
from typing import Tuple

from ..config import DEFAULT_CONFIDENCE_GATE, DEFAULT_REFERENCE_PITCH
from ..errors import InvalidInput

# Piano keys from A0 upwards, so names start at A.
NOTE_NAMES = ["A", "A#", "B", "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#"]
KEY_COUNT = 88
A4_INDEX = 48


@dataclass(frozen=True)
class ScaleEntry:
    frequency: float
    label: str


@dataclass(frozen=True)
class ScaleTable:
    """Sorted 88-key equal-tempered table anchored at ``reference_pitch`` (A4)."""

    reference_pitch: float
    entries: Tuple[ScaleEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    @cached_property
    def frequencies(self) -> Tuple[float, ...]:
        return tuple(e.frequency for e in self.entries)

    def frequency_of(self, label: str) -> float:
        for entry in self.entries:
            if entry.label == label:
                return entry.frequency
        raise KeyError(label)


def key_label(index: int) -> str:
    return f"{NOTE_NAMES[index % 12]}{(index + 9) // 12}"


def generate(reference_pitch: float) -> ScaleTable:
    entries = tuple(
        ScaleEntry(reference_pitch * 2 ** ((i - A4_INDEX) / 12), key_label(i))
        for i in range(KEY_COUNT)
    )
    return ScaleTable(reference_pitch=reference_pitch, entries=entries)


class TuningState:
    """
    Process-wide tuning reference. The table is rebuilt off to the side and
    swapped in as a whole object, so readers always get a complete snapshot.
    """

    def __init__(self, reference_pitch: float = DEFAULT_REFERENCE_PITCH,
                 confidence_gate: float = DEFAULT_CONFIDENCE_GATE):
        self._lock = threading.Lock()
        self._table = generate(self._validated(reference_pitch))
        self.confidence_gate = confidence_gate

    @staticmethod
    def _validated(value: float) -> float:
        try:
            value = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"reference pitch must be a number, got {value!r}") from e
        if not math.isfinite(value) or value <= 0:
            raise InvalidInput(f"reference pitch must be positive, got {value}")
        return value

    @property
    def table(self) -> ScaleTable:
        return self._table

    @property
    def reference_pitch(self) -> float:
        return self._table.reference_pitch

    def set_reference_pitch(self, value: float) -> ScaleTable:
        table = generate(self._validated(value))
        with self._lock:
            self._table = table
        return table

    def set_confidence_gate(self, value: float) -> float:
        value = float(value)
        if not 0.0 <= value <= 1.0:
            raise InvalidInput(f"confidence gate must be within [0, 1], got {value}")
        self.confidence_gate = value
        return value
