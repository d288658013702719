import logging
from dataclasses import dataclass, field
from typing import Optional, List
from breedcam.orchestrator.contracts import Frame, LoopState, Prediction

logger = logging.getLogger("breedcam")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

@dataclass
class StatusStore:
    """Shared state of one running classifier: read by the render cycle and the API,
    written by the classification cycle."""
    loop_state: LoopState = "idle"
    prediction: Prediction = field(default_factory=Prediction)
    frame: Optional[Frame] = None
    canvas_jpeg: Optional[bytes] = None   # latest composed display surface
    last_error: Optional[str] = None
    logs: List[str] = field(default_factory=list)

    def set_state(self, v: LoopState):
        self.loop_state = v

    def log(self, msg: str, level: str = "info", ring: bool = True):
        logger.log(_LEVELS.get(level, logging.INFO), msg)
        if not ring:
            return
        if level in ("warning", "error"):
            msg = f"{level.upper()} {msg}"
        self.logs.append(msg)
        if len(self.logs) > 200:
            self.logs = self.logs[-200:]
