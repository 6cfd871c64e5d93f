import logging

from fastapi import APIRouter, Depends, HTTPException

from ..config import TuningConfig
from ..deps import get_tuning
from ..errors import InvalidInput
from ..models.schemas import ScaleEntryOut, ScaleOut
from ..services.scale import TuningState

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=TuningConfig)
def get_tuning_config(tuning: TuningState = Depends(get_tuning)):
    return TuningConfig(reference_pitch=tuning.reference_pitch,
                        confidence_gate=tuning.confidence_gate)


@router.post("", response_model=TuningConfig)
def set_tuning_config(cfg: TuningConfig, tuning: TuningState = Depends(get_tuning)):
    """Change the A4 reference (rebuilds the scale table) and the confidence gate."""
    try:
        tuning.set_reference_pitch(cfg.reference_pitch)
        tuning.set_confidence_gate(cfg.confidence_gate)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("tuning set: A4=%.2f Hz, gate=%.2f", cfg.reference_pitch, cfg.confidence_gate)
    return get_tuning_config(tuning)


@router.get("/scale", response_model=ScaleOut)
def get_scale(tuning: TuningState = Depends(get_tuning)):
    table = tuning.table
    return ScaleOut(
        reference_pitch=table.reference_pitch,
        entries=[ScaleEntryOut(label=e.label, frequency=e.frequency) for e in table.entries],
    )
