"""
Tool system: BaseTool + ToolRegistry + the board tools exposed to the embedded agent
"""

from boardsync.tools.base import BaseTool, ToolError, ToolInputInvalid, ToolNotFound, ToolResult
from boardsync.tools.registry import ToolRegistry

__all__ = ["BaseTool", "ToolError", "ToolInputInvalid", "ToolNotFound", "ToolRegistry", "ToolResult"]
