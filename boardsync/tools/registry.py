"""
Tool registry: name -> typed handler dispatch table

execute() always returns a ToolResult:
- unknown name          -> ToolNotFound error result
- input fails validation -> ToolInputInvalid error result
- handler raises         -> error result (CancelledError still propagates)
"""

import asyncio

import structlog
from pydantic import BaseModel, ValidationError

from boardsync.board.engine import TaskNotFound
from boardsync.observability.metrics import TOOL_CALL_TOTAL
from boardsync.store.client import SyncUnavailable
from boardsync.tools.base import BaseTool, ToolError, ToolInputInvalid, ToolNotFound, ToolResult

log = structlog.get_logger()


class ToolRegistry:
    """Tool registry"""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        self._tools[tool.name] = tool
        log.debug("Tool registered", tool=tool.name, risk_level=tool.risk_level)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> BaseTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFound(f"unknown tool {name!r}")
        return tool

    def get_all_schemas(self) -> list[dict]:
        return [tool.schema() for tool in self._tools.values()]

    @staticmethod
    def validate(tool: BaseTool, arguments: object) -> BaseModel:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolInputInvalid(f"{tool.name}: input must be an object")
        try:
            return tool.params_model.model_validate(arguments)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}" for err in e.errors()
            )
            raise ToolInputInvalid(f"{tool.name}: {details}") from e

    async def execute(self, name: str, arguments: object) -> ToolResult:
        try:
            tool = self.get(name)
            params = self.validate(tool, arguments)
        except ToolError as e:
            TOOL_CALL_TOTAL.labels(tool_name="unknown" if isinstance(e, ToolNotFound) else name, status="error").inc()
            log.warning("Tool call rejected", tool=name, error=str(e))
            return ToolResult.fail(f"{type(e).__name__}: {e}")

        try:
            result = await asyncio.wait_for(tool.execute(params), timeout=tool.timeout_ms / 1000)
        except asyncio.TimeoutError:
            log.warning("Tool timed out", tool=name, timeout_ms=tool.timeout_ms)
            result = ToolResult.fail(f"{name} timed out after {tool.timeout_ms}ms")
        except asyncio.CancelledError:
            log.warning("Tool call cancelled", tool=name)
            raise
        except TaskNotFound as e:
            result = ToolResult.fail(f"Task not found: {e.args[0]}")
        except SyncUnavailable as e:
            result = ToolResult.fail(f"SyncUnavailable: {e}")
        except Exception as e:
            log.error("Tool raised", tool=name, error=str(e), exc_info=True)
            result = ToolResult.fail(f"{name} failed: {e}")

        TOOL_CALL_TOTAL.labels(tool_name=name, status=result.status).inc()
        return result

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools.keys())

    @property
    def tool_count(self) -> int:
        return len(self._tools)
