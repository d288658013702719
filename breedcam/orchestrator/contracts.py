from dataclasses import dataclass
from typing import Literal

import numpy as np

LoopState = Literal["idle", "awaiting_result", "stopped"]
UnknownLabelPolicy = Literal["ignore", "hide"]

@dataclass
class RankedLabel:
    label: str                 # e.g. "pitbull" | "nothing"
    confidence: float          # 0..1

@dataclass
class Prediction:
    label: str = ""            # "" until the first result arrives
    confidence: float = 0.0

@dataclass
class Frame:
    image: np.ndarray          # mirrored BGR, read-only once published
    seq: int
    captured_at: float
