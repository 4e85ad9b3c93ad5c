"""
Cross-frame tool bridge to the embedded chat agent
"""

from boardsync.bridge.channel import InboundEnvelope, MessageChannel
from boardsync.bridge.tool_bridge import OriginRejected, ToolBridge

__all__ = ["InboundEnvelope", "MessageChannel", "OriginRejected", "ToolBridge"]
