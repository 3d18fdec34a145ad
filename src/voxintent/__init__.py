"""voxintent - spoken commands to structured actions."""

from voxintent.context import ContextStore
from voxintent.gateway import CommandPipeline, SessionGateway, SpeechEvents
from voxintent.interpreter import Interpreter
from voxintent.tools import ToolRegistry
from voxintent.types import ActionResult, ToolCall

__version__ = "0.1.0"

__all__ = [
    "ActionResult",
    "CommandPipeline",
    "ContextStore",
    "Interpreter",
    "SessionGateway",
    "SpeechEvents",
    "ToolCall",
    "ToolRegistry",
]
