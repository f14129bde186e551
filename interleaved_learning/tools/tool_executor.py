# 学習ツールの登録・実行
# ツール名から学習操作を引き当て、入力辞書を渡して結果辞書を返す
"""
ツール実行モジュール

ツール定義（名前・説明・入力の JSON Schema）とハンドラーを組で登録し、
名前と入力辞書で呼び出す。通信路（HTTP, JSON-RPC）は対象外で、
呼び出し側が execute_tool() の戻り値をそのまま返却・表示する。

結果の形:
    ハンドラーは StudyService の結果辞書（{"success": ..., ...}）を返す。
    呼び出し側の誤りは例外にせず、同じ形の失敗結果にする:
        unknown_tool  : 登録されていないツール名
        invalid_input : 入力がオブジェクトでない、または ToolInputError
    それ以外のハンドラー例外は ToolExecutionError に包んで送出する。

使用例:
    executor = ToolExecutor()
    executor.register_tool(tool, handler)
    result = executor.execute_tool("get_interleaving_patterns", {})
    result["success"]
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

ERROR_UNKNOWN_TOOL = "unknown_tool"
ERROR_INVALID_INPUT = "invalid_input"


class ToolInputError(ValueError):
    """ツール入力が宣言された制約を満たさない場合のエラー"""


class ToolExecutionError(Exception):
    """ハンドラーが想定外の例外で失敗した場合のエラー

    Attributes:
        tool_name: 実行したツール名
        original_error: ハンドラーが送出した例外
    """

    def __init__(self, tool_name: str, original_error: Exception):
        super().__init__(f"ツール '{tool_name}' の実行に失敗しました: {original_error}")
        self.tool_name = tool_name
        self.original_error = original_error


@dataclass
class Tool:
    """ツール定義

    Attributes:
        name: ツール名（一意）
        description: ツールの説明
        input_schema: 入力の JSON Schema
    """

    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


ToolHandler = Callable[[Dict[str, Any]], Dict[str, Any]]


def _failure(error: str, error_type: str) -> Dict[str, Any]:
    return {"success": False, "error": error, "error_type": error_type}


class ToolExecutor:
    """学習ツールの登録表

    Attributes:
        _registry: ツール名 -> (Tool, ハンドラー)（登録順を保持）
    """

    def __init__(self) -> None:
        self._registry: Dict[str, Tuple[Tool, ToolHandler]] = {}

    def register_tool(self, tool: Tool, handler: ToolHandler) -> None:
        """ツールを登録

        Raises:
            ValueError: ツール名が空、または登録済みの場合
        """
        if not tool.name or not tool.name.strip():
            raise ValueError("ツール名は空にできません")
        if tool.name in self._registry:
            raise ValueError(f"ツール '{tool.name}' は登録済みです")

        self._registry[tool.name] = (tool, handler)
        logger.debug(f"ツール登録: name={tool.name}")

    def execute_tool(self, name: str, input_data: Any) -> Dict[str, Any]:
        """ツールを実行

        Args:
            name: ツール名
            input_data: ツールへの入力（オブジェクト）

        Returns:
            ハンドラーの結果辞書、または unknown_tool / invalid_input の失敗結果

        Raises:
            ToolExecutionError: ハンドラーが ToolInputError 以外の例外を送出した場合
        """
        entry = self._registry.get(name)
        if entry is None:
            logger.warning(f"未登録のツールが呼び出されました: {name}")
            return _failure(f"Unknown tool: {name}", ERROR_UNKNOWN_TOOL)
        if not isinstance(input_data, dict):
            return _failure("Tool input must be an object", ERROR_INVALID_INPUT)

        _, handler = entry
        logger.info(f"ツール実行開始: name={name}, input_keys={list(input_data.keys())}")

        try:
            result = handler(input_data)
        except ToolInputError as e:
            logger.warning(f"ツール入力エラー: name={name}, error={e}")
            return _failure(str(e), ERROR_INVALID_INPUT)
        except Exception as e:
            logger.error(f"ツール実行失敗: name={name}, error={e}")
            raise ToolExecutionError(name, e) from e

        logger.info(f"ツール実行完了: name={name}, success={result.get('success')}")
        return result

    def list_definitions(self) -> List[Dict[str, Any]]:
        """登録順のツール定義一覧"""
        return [tool.to_dict() for tool, _ in self._registry.values()]

    def list_tools(self) -> List[str]:
        return list(self._registry.keys())
