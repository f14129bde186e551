# CLI commands module
"""
CLIコマンド実装パッケージ

各コマンドは独立したモジュールとして実装され、
main.py から登録されます。
"""

from .deck import deck_command
from .quiz import quiz_command

__all__ = [
    "deck_command",
    "quiz_command",
]
