import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ..deps import get_capture, get_capture_factory, get_session, set_capture
from ..errors import DeviceUnavailable, InvalidInput
from ..models.schemas import HistoryOut, SessionStartRequest, SessionStatus, history_out
from ..services.session import RecordingSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status", response_model=SessionStatus)
def session_status(session: RecordingSession = Depends(get_session)):
    return SessionStatus(**session.status())


@router.post("/start", response_model=SessionStatus)
def start_session(req: Optional[SessionStartRequest] = None,
                  session: RecordingSession = Depends(get_session),
                  capture_factory=Depends(get_capture_factory)):
    """
    Start (or restart) the recording. Any recording in progress is discarded.
    Source "relay" records frames arriving on /ws/relay, "microphone" opens
    the local capture device.
    """
    req = req or SessionStartRequest()
    if req.source == "microphone":
        capture = capture_factory(device=req.device_id)
        try:
            capture.start(lambda block: session.feed(block, source="microphone"))
        except DeviceUnavailable as e:
            logger.warning("microphone recording refused: %s", e)
            raise HTTPException(status_code=503, detail=str(e))
        set_capture(capture)
    else:
        set_capture(None)

    try:
        session.start(duration=req.duration, source=req.source)
    except InvalidInput as e:
        set_capture(None)
        raise HTTPException(status_code=400, detail=str(e))
    return SessionStatus(**session.status())


@router.post("/stop", response_model=HistoryOut)
def stop_session(session: RecordingSession = Depends(get_session)):
    series = session.stop()
    if get_capture() is not None:
        set_capture(None)
    return history_out(series)


@router.get("/history", response_model=HistoryOut)
def session_history(session: RecordingSession = Depends(get_session)):
    if session.last_series is None:
        raise HTTPException(status_code=404, detail="no finished recording")
    return history_out(session.last_series)


@router.get("/recording.wav")
def session_recording(session: RecordingSession = Depends(get_session)):
    """Recorded audio as a 16 kHz mono 16-bit WAV (44-byte header only when empty)."""
    return Response(content=session.recording_wav(), media_type="audio/wav")
