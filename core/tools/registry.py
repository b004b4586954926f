from typing import Dict, Type

from core.models import ToolDescriptor
from core.services.catalog import get_tool, list_tools
from core.tools.base import GenerationTool, PlaceholderTool, RedirectTool, ToolHandler
from core.tools.image import BackgroundRemoverTool, VisualVariationsTool
from core.tools.structured import PpcAdsTool
from core.tools.text import CaptionTool, MarketingContentTool, NotificationTool
from core.tools.video import Mockup3DTool

INLINE_TOOLS: Dict[str, Type[GenerationTool]] = {
    "notification-generator": NotificationTool,
    "caption-generator": CaptionTool,
    "marketing-content": MarketingContentTool,
    "ppc-ads": PpcAdsTool,
    "visual-variations": VisualVariationsTool,
    "background-remover": BackgroundRemoverTool,
    "mockup-3d": Mockup3DTool,
}


def handler_for(descriptor: ToolDescriptor) -> ToolHandler:
    # a redirect wins over an inline implementation
    if descriptor.redirect_url:
        return RedirectTool(descriptor)
    tool_cls = INLINE_TOOLS.get(descriptor.key)
    if tool_cls is None:
        return PlaceholderTool(descriptor)
    return tool_cls(descriptor)


def build_tool_registry() -> Dict[str, ToolHandler]:
    return {descriptor.key: handler_for(descriptor) for descriptor in list_tools()}


def resolve_tool(key: str) -> ToolHandler:
    return handler_for(get_tool(key))
