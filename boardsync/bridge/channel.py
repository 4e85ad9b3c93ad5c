"""
Transport seam for the embedded surface

The host page implements post() with window.postMessage(message, targetOrigin)
and feeds every inbound "message" event to the bridge as an InboundEnvelope.
"""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class InboundEnvelope:
    """One inbound message event: payload + the sender's origin"""

    data: Any
    origin: str


class MessageChannel(Protocol):
    async def post(self, message: dict[str, Any], target_origin: str) -> None:
        """Deliver message to the embedded surface, restricted to target_origin"""
        ...
