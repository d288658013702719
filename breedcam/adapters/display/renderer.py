import cv2
import numpy as np

from breedcam.orchestrator.contracts import Frame

_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.5
_WHITE = (255, 255, 255)


class Renderer:
    """Draws the current frame and label onto a fixed-size black surface."""

    def __init__(self, size: tuple[int, int] = (320, 260), jpeg_quality: int = 85):
        self.size = size
        self.jpeg_quality = jpeg_quality

    def compose(self, frame: Frame | None, label: str) -> np.ndarray:
        w, h = self.size
        canvas = np.zeros((h, w, 3), dtype=np.uint8)
        if frame is not None:
            img = frame.image[:h, :w]
            canvas[: img.shape[0], : img.shape[1]] = img
        if label:
            (tw, _), _ = cv2.getTextSize(label, _FONT, _FONT_SCALE, 1)
            cv2.putText(canvas, label, ((w - tw) // 2, h - 4), _FONT, _FONT_SCALE, _WHITE, 1, cv2.LINE_AA)
        return canvas

    def encode(self, canvas: np.ndarray) -> bytes | None:
        ok, buf = cv2.imencode(".jpg", canvas, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            return None
        return bytes(buf)
