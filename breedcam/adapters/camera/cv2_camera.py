"""
OpenCV webcam capture adapter. The device index comes from Settings.camera_index.
"""
import itertools
import threading
import time
import cv2
from breedcam.adapters.camera.base import CameraAdapter, mirror
from breedcam.orchestrator.contracts import Frame
from breedcam.orchestrator.errors import CameraError

class CV2Camera(CameraAdapter):
    def __init__(self, status_store, index: int = 0, size: tuple[int, int] = (320, 240)):
        self.status = status_store
        self._index = index
        self._size = size
        self._cap = None
        self._seq = itertools.count(1)
        # capture runs in a worker thread; release must not pull the device from under a read
        self._lock = threading.Lock()

    def _open(self):
        if self._cap is None or not self._cap.isOpened():
            self._cap = cv2.VideoCapture(self._index)
            if not self._cap.isOpened():
                raise CameraError(f"cv2_camera: failed to open device {self._index}")
            w, h = self._size
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            self.status.log(f"cv2_camera: opened device {self._index} at {w}x{h}")

    def capture(self) -> Frame:
        with self._lock:
            self._open()
            ret, image = self._cap.read()
        if not ret or image is None:
            raise CameraError("cv2_camera: frame capture failed")
        return Frame(image=mirror(image, self._size), seq=next(self._seq), captured_at=time.time())

    def release(self):
        with self._lock:
            if self._cap and self._cap.isOpened():
                self._cap.release()
                self._cap = None
