"""
Tool base class + standardised result

BaseTool contract:
1. name / description / params_model: the tool schema (generated from Pydantic,
   never a hand-written dict)
2. execute: receives an already-validated params_model instance and returns a
   ToolResult

ToolResult:
- status: "success" | "error"
- data: tool-specific payload
- error: message (only when status="error")

Tool errors never cross the bridge as exceptions; the registry turns them into
ToolResult.fail(...).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


class ToolError(Exception):
    """Base class for errors reported back as a tool result"""


class ToolNotFound(ToolError):
    """No tool registered under this name"""


class ToolInputInvalid(ToolError):
    """Tool input failed params_model validation"""


@dataclass
class ToolResult:
    """Standardised tool result"""

    status: str  # "success" | "error"
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_payload(self) -> dict[str, Any]:
        """TOOL_RESPONSE body: either {"result": ...} or {"error": ...}"""
        if self.status == "error":
            return {"error": self.error or "unknown error"}
        return {"result": self.data}

    @classmethod
    def success(cls, **data: Any) -> "ToolResult":
        return cls(status="success", data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(status="error", error=error)


class BaseTool(ABC):
    """Every bridge tool derives from this"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name"""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Description shown to the agent"""
        ...

    @property
    @abstractmethod
    def params_model(self) -> type[BaseModel]:
        """Input model; also the source of the JSON schema"""
        ...

    @abstractmethod
    async def execute(self, params: BaseModel) -> ToolResult:
        """Run the tool with validated input"""
        ...

    @property
    def timeout_ms(self) -> int:
        """Registry-level timeout; remote calls inside have their own, shorter one"""
        return 20_000

    @property
    def risk_level(self) -> str:
        """read / write; write tools trigger a board reload + context push"""
        return "read"

    @property
    def mutates(self) -> bool:
        return self.risk_level == "write"

    def schema(self) -> dict:
        """Catalog entry sent in REGISTER_TOOLS"""
        json_schema = self.params_model.model_json_schema()

        properties = {}
        for key, prop in json_schema.get("properties", {}).items():
            properties[key] = {k: v for k, v in prop.items() if k != "title"}

        parameters: dict[str, Any] = {
            "type": "object",
            "properties": properties,
            "required": json_schema.get("required", []),
        }
        if "$defs" in json_schema:
            parameters["$defs"] = json_schema["$defs"]

        return {
            "name": self.name,
            "description": self.description,
            "parameters": parameters,
        }
