# ツールモジュール
# ツールの登録・実行と7つの学習ツール

from interleaved_learning.tools.tool_executor import (
    ERROR_INVALID_INPUT,
    ERROR_UNKNOWN_TOOL,
    Tool,
    ToolExecutionError,
    ToolExecutor,
    ToolHandler,
    ToolInputError,
)
from interleaved_learning.tools.study_tools import (
    STUDY_TOOLS,
    create_tool_executor_with_study_tools,
)

__all__ = [
    "ERROR_INVALID_INPUT",
    "ERROR_UNKNOWN_TOOL",
    "Tool",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolHandler",
    "ToolInputError",
    "STUDY_TOOLS",
    "create_tool_executor_with_study_tools",
]
