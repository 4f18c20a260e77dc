from .builtin import BUILTIN_TOOLS, build_default_registry
from .context import ToolContext
from .dispatcher import ToolDispatcher
from .registry import ToolRegistry, ToolSpec

__all__ = ["ToolSpec", "ToolRegistry", "ToolDispatcher", "ToolContext", "BUILTIN_TOOLS", "build_default_registry"]
