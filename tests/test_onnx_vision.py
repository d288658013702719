import asyncio
import json
from types import SimpleNamespace

import httpx
import numpy as np
import pytest

from breedcam.adapters.vision.onnx_vision import OnnxVision, descriptor_url
from breedcam.orchestrator.errors import ClassificationError, ModelLoadError

LABELS = ["pitbull", "dalmatier", "nothing"]


class FakeSession:
    def __init__(self, outputs, input_shape=(1, 224, 224, 3), n_out=3):
        self._outputs = outputs
        self._input_shape = list(input_shape)
        self._n_out = n_out
        self.fed = []

    def get_inputs(self):
        return [SimpleNamespace(name="input_1", shape=self._input_shape)]

    def get_outputs(self):
        return [SimpleNamespace(name="probs", shape=[None, self._n_out])]

    def run(self, names, feeds):
        self.fed.append(feeds["input_1"])
        return [np.array([self._outputs], dtype=np.float32)]


def factory(session):
    return lambda model_bytes: session


def write_model(tmp_path, desc):
    (tmp_path / "metadata.json").write_text(json.dumps(desc))
    (tmp_path / "model.onnx").write_bytes(b"onnx")
    return tmp_path


def image():
    return np.full((240, 320, 3), 128, dtype=np.uint8)


def test_descriptor_url():
    assert descriptor_url("https://m.test/dogs") == "https://m.test/dogs/metadata.json"
    assert descriptor_url("https://m.test/dogs/") == "https://m.test/dogs/metadata.json"
    assert descriptor_url("https://m.test/dogs/meta.json") == "https://m.test/dogs/meta.json"


def test_load_from_directory_and_classify(status, tmp_path):
    session = FakeSession([0.1, 2.0, 0.5])
    write_model(tmp_path, {"labels": LABELS, "imageSize": 96})

    vision = asyncio.run(OnnxVision.load(status, str(tmp_path), session_factory=factory(session)))
    assert vision.labels == LABELS
    result = asyncio.run(vision.classify(image()))

    assert [r.label for r in result] == ["dalmatier", "nothing", "pitbull"]
    assert sum(r.confidence for r in result) == pytest.approx(1.0, abs=1e-5)
    fed = session.fed[0]
    assert fed.shape == (1, 96, 96, 3)
    assert fed.min() >= -1.0 and fed.max() <= 1.0


def test_probabilities_pass_through(status, tmp_path):
    session = FakeSession([0.92, 0.05, 0.03])
    write_model(tmp_path, {"labels": LABELS})
    vision = asyncio.run(OnnxVision.load(status, str(tmp_path / "metadata.json"),
                                         session_factory=factory(session)))
    top = asyncio.run(vision.classify(image()))[0]
    assert top.label == "pitbull"
    assert top.confidence == pytest.approx(0.92)


def test_channels_first_models(status, tmp_path):
    session = FakeSession([0.2, 0.3, 0.5], input_shape=(1, 3, 224, 224))
    write_model(tmp_path, {"labels": LABELS})
    vision = asyncio.run(OnnxVision.load(status, str(tmp_path), session_factory=factory(session)))
    asyncio.run(vision.classify(image()))
    assert session.fed[0].shape == (1, 3, 224, 224)


def test_load_over_http(status):
    session = FakeSession([0.1, 0.1, 0.8])
    seen = []

    def handler(request):
        seen.append(request.url.path)
        if request.url.path == "/dogs/metadata.json":
            return httpx.Response(200, json={"labels": LABELS, "modelFile": "dogs.onnx"})
        if request.url.path == "/dogs/dogs.onnx":
            return httpx.Response(200, content=b"onnx")
        return httpx.Response(404)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await OnnxVision.load(status, "https://models.test/dogs/", client=client,
                                         session_factory=factory(session))

    vision = asyncio.run(scenario())
    assert seen == ["/dogs/metadata.json", "/dogs/dogs.onnx"]
    assert vision.labels == LABELS


def test_http_404_is_model_load_error(status):
    async def scenario():
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        async with httpx.AsyncClient(transport=transport) as client:
            await OnnxVision.load(status, "https://models.test/dogs/", client=client,
                                  session_factory=factory(FakeSession([0, 0, 1])))

    with pytest.raises(ModelLoadError, match="descriptor"):
        asyncio.run(scenario())


@pytest.mark.parametrize("desc", [{}, {"labels": []}, {"labels": [1, 2]}, ["pitbull"]])
def test_descriptor_without_labels(status, tmp_path, desc):
    write_model(tmp_path, desc)
    with pytest.raises(ModelLoadError, match="no labels"):
        asyncio.run(OnnxVision.load(status, str(tmp_path), session_factory=factory(FakeSession([]))))


@pytest.mark.parametrize("extra", [
    {"imageSize": "big"}, {"imageSize": None}, {"imageSize": [224]}, {"imageSize": 0},
    {"modelFile": 5}, {"modelFile": ""},
])
def test_bad_descriptor_fields(status, tmp_path, extra):
    write_model(tmp_path, {"labels": LABELS, **extra})
    with pytest.raises(ModelLoadError, match="bad imageSize"):
        asyncio.run(OnnxVision.load(status, str(tmp_path), session_factory=factory(FakeSession([]))))


def test_missing_model_url(status):
    with pytest.raises(ModelLoadError, match="MODEL_URL"):
        asyncio.run(OnnxVision.load(status, ""))


def test_missing_descriptor_file(status, tmp_path):
    with pytest.raises(ModelLoadError):
        asyncio.run(OnnxVision.load(status, str(tmp_path / "nope"), session_factory=factory(FakeSession([]))))


def test_broken_model_file(status, tmp_path):
    write_model(tmp_path, {"labels": LABELS})

    def broken(model_bytes):
        raise RuntimeError("not an onnx graph")

    with pytest.raises(ModelLoadError, match="not an onnx graph"):
        asyncio.run(OnnxVision.load(status, str(tmp_path), session_factory=broken))


def test_output_count_mismatch(status, tmp_path):
    write_model(tmp_path, {"labels": LABELS})
    session = FakeSession([0.5, 0.5], n_out=2)
    with pytest.raises(ModelLoadError, match="2 outputs but 3 labels"):
        asyncio.run(OnnxVision.load(status, str(tmp_path), session_factory=factory(session)))


def test_inference_failure_is_classification_error(status):
    class Exploding(FakeSession):
        def run(self, names, feeds):
            raise RuntimeError("bad input")

    vision = OnnxVision(status, Exploding([]), LABELS)
    with pytest.raises(ClassificationError, match="bad input"):
        asyncio.run(vision.classify(image()))
