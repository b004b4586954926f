from .base import VIEW_FORM as VIEW_FORM
from .base import VIEW_PLACEHOLDER as VIEW_PLACEHOLDER
from .base import VIEW_REDIRECT as VIEW_REDIRECT
from .base import GenerationTool as GenerationTool
from .base import PlaceholderTool as PlaceholderTool
from .base import RedirectTool as RedirectTool
from .base import ToolHandler as ToolHandler
from .registry import build_tool_registry as build_tool_registry
from .registry import resolve_tool as resolve_tool

__all__ = [
    "VIEW_FORM",
    "VIEW_PLACEHOLDER",
    "VIEW_REDIRECT",
    "GenerationTool",
    "PlaceholderTool",
    "RedirectTool",
    "ToolHandler",
    "build_tool_registry",
    "resolve_tool",
]
