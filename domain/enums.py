from enum import Enum


class LoopState(str, Enum):
    """Lifecycle of the inference loop."""
    IDLE      = "IDLE"
    RUNNING   = "RUNNING"
    SUSPENDED = "SUSPENDED"
    STOPPED   = "STOPPED"


class ActionKind(str, Enum):
    """Tag of each Action variant."""
    CLICK      = "CLICK"
    SWIPE      = "SWIPE"
    TEXT_INPUT = "TEXT_INPUT"
    WAIT       = "WAIT"


class PixelFormat(str, Enum):
    """Channel layout of a captured buffer."""
    RGB  = "RGB"
    BGR  = "BGR"
    RGBA = "RGBA"
    BGRA = "BGRA"
    GRAY = "GRAY"


class StatusKind(str, Enum):
    """Notifications published on the status channel."""
    STARTED = "started"
    STOPPED = "stopped"
    ERROR   = "error"


class ErrorKind(str, Enum):
    """Failure taxonomy shared by capture, inference and dispatch."""
    CAPTURE_TRANSIENT   = "CAPTURE_TRANSIENT"
    MODEL_UNAVAILABLE   = "MODEL_UNAVAILABLE"
    MODEL_LOAD          = "MODEL_LOAD"
    TRANSFORM           = "TRANSFORM"
    INFERENCE_RUNTIME   = "INFERENCE_RUNTIME"
    DISPATCH            = "DISPATCH"
    SURFACE_UNAVAILABLE = "SURFACE_UNAVAILABLE"


class LoadFailure(str, Enum):
    """Reason attached to a ModelLoadError."""
    UNAVAILABLE          = "UNAVAILABLE"
    CORRUPT              = "CORRUPT"
    RUNTIME_INIT_FAILURE = "RUNTIME_INIT_FAILURE"


class TickResult(str, Enum):
    """What happened during one engine tick."""
    COMPLETED        = "COMPLETED"
    SKIPPED_NO_MODEL = "SKIPPED_NO_MODEL"
    SKIPPED_BUSY     = "SKIPPED_BUSY"
    SKIPPED_NO_FRAME = "SKIPPED_NO_FRAME"
    FAILED           = "FAILED"
