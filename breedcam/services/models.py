from pydantic import BaseModel
from typing import Literal, Optional

class PredictionOut(BaseModel):
    label: str
    confidence: float

class StatusResponse(BaseModel):
    loop_state: Literal["idle", "awaiting_result", "stopped"]
    running: bool
    prediction: PredictionOut
    threshold: float
    regions: dict[str, bool]
    visible: Optional[str] = None      # region currently shown, None when all hidden
    frame_seq: Optional[int] = None
    last_error: Optional[str] = None
    logs: list[str]

class RegionsResponse(BaseModel):
    regions: dict[str, bool]
    visible: Optional[str] = None

class ControlResponse(BaseModel):
    ok: bool
    loop_state: str
    error: Optional[str] = None

class HealthResponse(BaseModel):
    ok: bool
    vision_adapter: str
    camera_adapter: str
    labels: list[str]
    unmapped_labels: list[str]         # model labels with no region
    loop_state: str
