import bisect
import logging
import math
from typing import NamedTuple

from ..errors import InvalidInput, InvariantViolation
from .scale import ScaleTable

logger = logging.getLogger(__name__)


class NearestNote(NamedTuple):
    frequency: float
    label: str


def nearest(frequency: float, table: ScaleTable) -> NearestNote:
    """
    Nearest scale entry to ``frequency``.

    Clamps below the lowest and above the highest key. Inside the range the
    bracketing pair is found by bisection and the closer one wins; an exact
    tie goes to the lower entry. Same answer as a linear scan over the table.
    """
    if math.isnan(frequency):
        raise InvalidInput("cannot quantize NaN frequency")
    entries = table.entries
    if not entries:
        logger.error("quantize against empty scale table (reference=%s)", table.reference_pitch)
        raise InvariantViolation("scale table is empty")

    first, last = entries[0], entries[-1]
    if frequency <= first.frequency:
        return NearestNote(first.frequency, first.label)
    if frequency >= last.frequency:
        return NearestNote(last.frequency, last.label)

    hi = bisect.bisect_left(table.frequencies, frequency)
    if not 0 < hi < len(entries):
        logger.error("no bracket for %r in table of %d keys", frequency, len(entries))
        raise InvariantViolation(f"failed to bracket {frequency!r} in scale table")
    lower, upper = entries[hi - 1], entries[hi]
    if not lower.frequency < frequency <= upper.frequency:
        logger.error("bad bracket for %r: [%r, %r]", frequency, lower.frequency, upper.frequency)
        raise InvariantViolation(f"failed to bracket {frequency!r} in scale table")

    if upper.frequency - frequency < frequency - lower.frequency:
        return NearestNote(upper.frequency, upper.label)
    return NearestNote(lower.frequency, lower.label)
