from core.frame_slot import FrameSlot
from core.frame_source import FrameSource
from core.engine import InferenceEngine
from core.decoder import decode
from core.executor import ActionExecutor
from core.status import StatusChannel
from core.agent import Agent

__all__ = [
    "FrameSlot",
    "FrameSource",
    "InferenceEngine",
    "decode",
    "ActionExecutor",
    "StatusChannel",
    "Agent",
]
