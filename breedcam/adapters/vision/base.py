import numpy as np

from breedcam.orchestrator.contracts import RankedLabel

class VisionAdapter:
    labels: list[str] = []

    async def classify(self, image: np.ndarray) -> list[RankedLabel]:
        """Return labels ranked by descending confidence. Raises ClassificationError."""
        raise NotImplementedError


def rank(labels: list[str], scores) -> list[RankedLabel]:
    ranked = [RankedLabel(label=l, confidence=float(s)) for l, s in zip(labels, scores)]
    ranked.sort(key=lambda r: r.confidence, reverse=True)
    return ranked
