from .catalog import CATEGORIES as CATEGORIES
from .catalog import TOOL_CATALOG as TOOL_CATALOG
from .catalog import clear_redirect_override as clear_redirect_override
from .catalog import get_tool as get_tool
from .catalog import list_redirects as list_redirects
from .catalog import list_tool_entries as list_tool_entries
from .catalog import list_tools as list_tools
from .catalog import set_redirect_override as set_redirect_override
from .generation import ServiceConfig as ServiceConfig
from .generation import build_adapter as build_adapter
from .generation import load_config_from_env as load_config_from_env
from .generation import save_api_key as save_api_key

__all__ = [
    "CATEGORIES",
    "TOOL_CATALOG",
    "ServiceConfig",
    "build_adapter",
    "clear_redirect_override",
    "get_tool",
    "list_redirects",
    "list_tool_entries",
    "list_tools",
    "load_config_from_env",
    "save_api_key",
    "set_redirect_override",
]
