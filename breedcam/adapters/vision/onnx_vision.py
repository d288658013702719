"""
ONNX Runtime image classifier, loaded once from MODEL_URL.

MODEL_URL points at a Teachable-Machine style descriptor (metadata.json):
  {"labels": ["border collie", ...], "imageSize": 224, "modelFile": "model.onnx"}
Either the descriptor itself (.../metadata.json) or its directory may be given.
http(s) URLs are fetched with httpx, anything else is read from disk.
"""
import asyncio
import json
from pathlib import Path
from urllib.parse import urljoin

import cv2
import httpx
import numpy as np
import onnxruntime as ort

from breedcam.adapters.vision.base import VisionAdapter, rank
from breedcam.orchestrator.contracts import RankedLabel
from breedcam.orchestrator.errors import ClassificationError, ModelLoadError

DESCRIPTOR_NAME = "metadata.json"
DEFAULT_MODEL_FILE = "model.onnx"
DEFAULT_IMAGE_SIZE = 224


def _is_http(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def descriptor_url(url: str) -> str:
    if url.endswith(".json"):
        return url
    if _is_http(url):
        return url.rstrip("/") + "/" + DESCRIPTOR_NAME
    return str(Path(url) / DESCRIPTOR_NAME)


def _sibling(descriptor: str, name: str) -> str:
    if _is_http(descriptor):
        return urljoin(descriptor, name)
    return str(Path(descriptor).parent / name)


async def _fetch(client: httpx.AsyncClient, url: str) -> bytes:
    if _is_http(url):
        resp = await client.get(url)
        resp.raise_for_status()
        return resp.content
    return await asyncio.to_thread(Path(url).read_bytes)


def _default_session(model_bytes: bytes):
    return ort.InferenceSession(model_bytes, providers=["CPUExecutionProvider"])


class OnnxVision(VisionAdapter):
    def __init__(self, status_store, session, labels: list[str], image_size: int = DEFAULT_IMAGE_SIZE):
        self.status = status_store
        self.labels = list(labels)
        self.image_size = image_size
        self._session = session
        inp = session.get_inputs()[0]
        self._input_name = inp.name
        # Teachable Machine / Keras exports are NHWC, torch exports NCHW
        self._channels_last = len(inp.shape) == 4 and inp.shape[-1] == 3

    @classmethod
    async def load(cls, status_store, url: str, client: httpx.AsyncClient | None = None,
                   session_factory=_default_session) -> "OnnxVision":
        if not url:
            raise ModelLoadError("onnx_vision: MODEL_URL not set")
        desc_url = descriptor_url(url)
        owns_client = client is None
        client = client or httpx.AsyncClient(timeout=30.0, follow_redirects=True)
        try:
            status_store.log(f"onnx_vision: loading descriptor {desc_url}")
            try:
                desc = json.loads(await _fetch(client, desc_url))
            except (httpx.HTTPError, OSError, ValueError) as e:
                raise ModelLoadError(f"onnx_vision: cannot read descriptor {desc_url}: {e}") from e

            labels = desc.get("labels") if isinstance(desc, dict) else None
            if not labels or not all(isinstance(l, str) for l in labels):
                raise ModelLoadError(f"onnx_vision: descriptor {desc_url} has no labels")
            model_file = desc.get("modelFile", DEFAULT_MODEL_FILE)
            try:
                image_size = int(desc.get("imageSize", DEFAULT_IMAGE_SIZE))
            except (TypeError, ValueError) as e:
                raise ModelLoadError(f"onnx_vision: descriptor {desc_url} has a bad imageSize: {e}") from e
            if image_size <= 0 or not isinstance(model_file, str) or not model_file:
                raise ModelLoadError(
                    f"onnx_vision: descriptor {desc_url} has a bad imageSize or modelFile")

            model_url = _sibling(desc_url, model_file)
            status_store.log(f"onnx_vision: loading model {model_url}")
            try:
                model_bytes = await _fetch(client, model_url)
                session = await asyncio.to_thread(session_factory, model_bytes)
            except Exception as e:
                raise ModelLoadError(f"onnx_vision: cannot load model {model_url}: {e}") from e
        finally:
            if owns_client:
                await client.aclose()

        n_out = session.get_outputs()[0].shape[-1]
        if isinstance(n_out, int) and n_out != len(labels):
            raise ModelLoadError(f"onnx_vision: model has {n_out} outputs but {len(labels)} labels")

        status_store.log(f"onnx_vision: ready labels={labels} size={image_size}")
        return cls(status_store, session, labels, image_size)

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        rgb = cv2.resize(rgb, (self.image_size, self.image_size), interpolation=cv2.INTER_AREA)
        x = rgb.astype(np.float32) / 127.5 - 1.0
        if not self._channels_last:
            x = x.transpose(2, 0, 1)
        return x[np.newaxis, ...]

    def _infer(self, image: np.ndarray) -> list[RankedLabel]:
        out = self._session.run(None, {self._input_name: self.preprocess(image)})[0]
        scores = np.asarray(out, dtype=np.float32).reshape(-1)
        if scores.shape[0] != len(self.labels):
            raise ClassificationError(
                f"onnx_vision: got {scores.shape[0]} scores for {len(self.labels)} labels")
        if scores.min() < 0 or not np.isclose(scores.sum(), 1.0, atol=1e-3):
            e = np.exp(scores - scores.max())
            scores = e / e.sum()
        return rank(self.labels, scores)

    async def classify(self, image: np.ndarray) -> list[RankedLabel]:
        try:
            return await asyncio.to_thread(self._infer, image)
        except ClassificationError:
            raise
        except Exception as e:
            raise ClassificationError(f"onnx_vision: inference failed: {e}") from e
