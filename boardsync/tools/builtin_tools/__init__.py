"""
Board tools: registered into a ToolRegistry bound to one SyncEngine

Usage:
    from boardsync.tools.builtin_tools import create_board_registry
    registry = create_board_registry(engine)
"""

from boardsync.board.engine import SyncEngine
from boardsync.tools.builtin_tools.create_task import CreateTaskTool
from boardsync.tools.builtin_tools.delete_task import DeleteTaskTool
from boardsync.tools.builtin_tools.get_task import GetTaskTool
from boardsync.tools.builtin_tools.list_tasks import ListTasksTool
from boardsync.tools.builtin_tools.move_task import MoveTaskTool
from boardsync.tools.builtin_tools.update_task import UpdateTaskTool
from boardsync.tools.registry import ToolRegistry


def create_board_registry(engine: SyncEngine) -> ToolRegistry:
    """Registry with the six board tools"""
    registry = ToolRegistry()

    # read
    registry.register(ListTasksTool(engine))
    registry.register(GetTaskTool(engine))

    # write (bridge reloads the board + pushes context afterwards)
    registry.register(CreateTaskTool(engine))
    registry.register(UpdateTaskTool(engine))
    registry.register(MoveTaskTool(engine))
    registry.register(DeleteTaskTool(engine))

    return registry
