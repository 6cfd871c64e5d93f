import io
import logging
from typing import Tuple

import numpy as np
import soundfile as sf

from ..errors import InvalidInput

logger = logging.getLogger(__name__)


def decode_audio(data: bytes) -> Tuple[np.ndarray, int]:
    """
    Decode an uploaded audio file at its native sample rate.

    Returns the first channel as float32 in [-1, 1] and the sample rate.
    """
    if not data:
        raise InvalidInput("empty audio file")
    try:
        audio, samplerate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, TypeError, ValueError) as e:  # LibsndfileError is a RuntimeError
        logger.info("could not decode upload (%d bytes): %s", len(data), e)
        raise InvalidInput(f"could not decode audio: {e}") from e
    if audio.shape[0] == 0:
        raise InvalidInput("audio file contains no samples")
    return np.ascontiguousarray(audio[:, 0]), int(samplerate)
