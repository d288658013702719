ERR_MODEL_LOAD = "MODEL_LOAD"
ERR_CLASSIFY = "CLASSIFY"
ERR_TIMEOUT = "TIMEOUT"
ERR_CAMERA = "CAMERA"
ERR_STOPPED = "STOPPED"
ERR_UNKNOWN = "UNKNOWN"


class BreedcamError(Exception):
    code = ERR_UNKNOWN


class ModelLoadError(BreedcamError):
    code = ERR_MODEL_LOAD


class ClassificationError(BreedcamError):
    code = ERR_CLASSIFY


class CameraError(BreedcamError):
    code = ERR_CAMERA


class RegionConfigError(BreedcamError, ValueError):
    pass
