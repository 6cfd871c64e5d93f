import logging

import numpy as np
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from ..deps import get_analyzer, get_tuning
from ..errors import InvalidInput
from ..models.schemas import FrameOut, FrameRequest, HistoryOut, frame_out, history_out
from ..services.analyzer import FrameAnalyzer
from ..services.decode import decode_audio
from ..services.history import HistoryBuffer, HistorySeries
from ..services.scale import TuningState

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/frame", response_model=FrameOut)
def analyze_frame(req: FrameRequest,
                  analyzer: FrameAnalyzer = Depends(get_analyzer),
                  tuning: TuningState = Depends(get_tuning)):
    """Analyze one window of samples against the current tuning."""
    samples = np.asarray(req.samples, dtype=np.float64)
    if req.encoding == "int16":
        if samples.size and (samples.min() < -32768 or samples.max() > 32767):
            raise HTTPException(status_code=400, detail="int16 samples out of range")
        samples = samples.astype(np.int16)
    try:
        frame = analyzer.analyze(samples, req.samplerate, tuning.table, tuning.confidence_gate)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return frame_out(frame)


def _analyze_upload(data: bytes, name: str, analyzer: FrameAnalyzer,
                    tuning: TuningState) -> HistorySeries:
    samples, samplerate = decode_audio(data)
    table, gate = tuning.table, tuning.confidence_gate
    history = HistoryBuffer(samplerate=samplerate, reference_pitch=table.reference_pitch, source=name)
    for frame in analyzer.analyze_signal(samples, samplerate, table, gate):
        history.append(frame, frame.time_offset)
    series = history.finalize()
    logger.info("analyzed %s: %d windows at %d Hz, %d confident",
                name, len(series), samplerate, len(series.confident()))
    return series


@router.post("/file", response_model=HistoryOut)
async def analyze_file(file: UploadFile = File(...),
                       analyzer: FrameAnalyzer = Depends(get_analyzer),
                       tuning: TuningState = Depends(get_tuning)):
    """
    Analyze an uploaded recording at its native sample rate (first channel)
    in consecutive windows and return the resulting history.
    """
    name = file.filename or "upload"
    content = await file.read()
    try:
        series = await run_in_threadpool(_analyze_upload, content, name, analyzer, tuning)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return history_out(series)
