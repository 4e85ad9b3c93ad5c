"""
Cross-frame message protocol between the board and the embedded chat agent

Inbound (embed -> board): READY, REQUEST_TOKEN_REFRESH, TOOL_CALL
Outbound (board -> embed): AUTH, REGISTER_TOOLS, ADD_CONTEXT, TOOL_RESPONSE

Wire keys are camelCase (requestId); Python attributes are snake_case.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class MessageType(str, Enum):
    READY = "READY"
    AUTH = "AUTH"
    REQUEST_TOKEN_REFRESH = "REQUEST_TOKEN_REFRESH"
    REGISTER_TOOLS = "REGISTER_TOOLS"
    ADD_CONTEXT = "ADD_CONTEXT"
    TOOL_CALL = "TOOL_CALL"
    TOOL_RESPONSE = "TOOL_RESPONSE"


class BridgeMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Inbound ──

class ReadyMessage(BridgeMessage):
    type: Literal["READY"] = "READY"


class RequestTokenRefreshMessage(BridgeMessage):
    type: Literal["REQUEST_TOKEN_REFRESH"] = "REQUEST_TOKEN_REFRESH"


class ToolCallMessage(BridgeMessage):
    type: Literal["TOOL_CALL"] = "TOOL_CALL"
    request_id: str | int = Field(alias="requestId")
    tool: str
    input: Any = None


InboundMessage = Annotated[
    Union[ReadyMessage, RequestTokenRefreshMessage, ToolCallMessage],
    Field(discriminator="type"),
]

inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


# ── Outbound ──

class AuthMessage(BridgeMessage):
    type: Literal["AUTH"] = "AUTH"
    token: str


class RegisterToolsMessage(BridgeMessage):
    type: Literal["REGISTER_TOOLS"] = "REGISTER_TOOLS"
    tools: list[dict[str, Any]]


class ContextItem(BaseModel):
    id: str
    title: str
    content: str


class AddContextMessage(BridgeMessage):
    type: Literal["ADD_CONTEXT"] = "ADD_CONTEXT"
    items: list[ContextItem]


class ToolResponseMessage(BridgeMessage):
    type: Literal["TOOL_RESPONSE"] = "TOOL_RESPONSE"
    request_id: str | int = Field(alias="requestId")
    result: Any = None
    error: str | None = None
