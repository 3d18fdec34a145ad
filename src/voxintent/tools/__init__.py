"""Action dispatch package."""

from voxintent.tools.builtin import build_default_registry, register_builtin_tools
from voxintent.tools.registry import ToolDescriptor, ToolRegistry

__all__ = ["ToolDescriptor", "ToolRegistry", "build_default_registry", "register_builtin_tools"]
