#!/usr/bin/env python3
from __future__ import annotations
"""
インターリーブ学習 CLI メインエントリーポイント

学習ツールをターミナルから操作するための CLI インターフェース。
ストアは STUDY_STORE_BACKEND で選択する（memory はプロセス終了で消えるため、
複数回の呼び出しをまたいで状態を残す場合は postgres を使用）。
"""

import json
import logging
import sys
from typing import Any, Dict, List, Optional

import click

from interleaved_learning.cli.commands.deck import deck_command
from interleaved_learning.cli.commands.quiz import quiz_command
from interleaved_learning.cli.utils.output import echo_json, echo_list, echo_table
from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.core.study_store import StudyStore, create_study_store
from interleaved_learning.interleaving.pattern_catalog import InterleavingPattern
from interleaved_learning.interleaving.study_service import StudyService
from interleaved_learning.tools.study_tools import create_tool_executor_with_study_tools
from interleaved_learning.tools.tool_executor import (
    ERROR_INVALID_INPUT,
    ERROR_UNKNOWN_TOOL,
    ToolExecutionError,
    ToolExecutor,
)


class CLIContext:
    """CLI共通コンテキスト（依存関係を保持）"""

    def __init__(self):
        self.config: Optional[StudyConfig] = None
        self.store: Optional[StudyStore] = None
        self.service: Optional[StudyService] = None
        self.tool_executor: Optional[ToolExecutor] = None
        self.seed: Optional[int] = None
        self._initialized = False

    def initialize(self):
        """遅延初期化（必要時に呼び出される）"""
        if self._initialized:
            return

        try:
            self.config = StudyConfig()
            self.store = create_study_store(self.config)
            self.service = StudyService(self.store, self.config, RandomSource(self.seed))
            self.tool_executor = create_tool_executor_with_study_tools(self.service)
            self._initialized = True

        except Exception as e:
            click.echo(f"[初期化エラー] システムの初期化に失敗しました: {e}", err=True)
            sys.exit(1)

    def run_tool(self, name: str, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """ツールを実行して結果辞書を返す

        未登録ツールと入力エラーは終了コード2、それ以外の失敗は終了コード1で終了する。
        """
        self.initialize()
        try:
            result = self.tool_executor.execute_tool(name, input_data)
        except ToolExecutionError as e:
            click.echo(f"[エラー] {e}", err=True)
            sys.exit(1)

        if result.get("success"):
            return result

        error_type = result.get("error_type")
        if error_type == ERROR_INVALID_INPUT:
            click.echo(f"[エラー] 入力が正しくありません: {result.get('error')}", err=True)
            sys.exit(2)
        click.echo(f"[エラー] {result.get('error')}", err=True)
        if error_type == ERROR_UNKNOWN_TOOL:
            click.echo("\nヒント: study tools で登録済みツールを確認してください", err=True)
            sys.exit(2)
        sys.exit(1)


# click の pass_context でCLIContextを共有
pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def _format_option():
    return click.option(
        '--format', 'output_format',
        type=click.Choice(['table', 'json']), default='table', help='出力形式',
    )


@click.group()
@click.version_option(version="0.1.0", prog_name="study")
@click.option('--verbose', is_flag=True, help='詳細ログを表示')
@click.option('--seed', type=int, help='乱数シード（再現用）')
@pass_context
def study(ctx: CLIContext, verbose: bool, seed: Optional[int]):
    """
    インターリーブ学習 CLI

    学習計画の作成、混合クイズ、フラッシュカード、学習記録と進捗をターミナルから扱えます。
    """
    ctx.seed = seed
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@study.command()
@_format_option()
@pass_context
def patterns(ctx: CLIContext, output_format: str):
    """インターリーブパターンの一覧を表示する"""
    result = ctx.run_tool("get_interleaving_patterns", {})

    if output_format == 'json':
        echo_json(result)
        return

    click.echo(f"インターリーブパターン ({len(result['patterns'])}件):\n")
    echo_table(
        ["ID", "名前", "難易度", "向いている用途"],
        [[p["id"], p["name"], p["difficulty"], p["best_for"]] for p in result["patterns"]],
    )
    click.echo("")
    echo_list("効果:", result["benefits"])
    echo_list("ヒント:", result["tips"])


@study.command()
@click.argument('user_id')
@click.option('-s', '--subject', 'subjects', multiple=True, required=True,
              help='科目（"Math:algebra,geometry" の形式でサブトピックを指定可能）')
@click.option('--minutes', type=int, required=True, help='合計学習時間（分）')
@click.option('--pattern', type=click.Choice([p.value for p in InterleavingPattern]),
              default=InterleavingPattern.SYSTEMATIC_SHORT.value, help='インターリーブパターン')
@click.option('--no-breaks', is_flag=True, help='休憩を挿入しない')
@_format_option()
@pass_context
def plan(ctx: CLIContext, user_id: str, subjects: List[str], minutes: int, pattern: str,
         no_breaks: bool, output_format: str):
    """インターリーブ学習計画を作成する

    \b
    例:
      study plan user_01 -s "Math:algebra,geometry" -s Biology --minutes 90
    """
    result = ctx.run_tool("create_study_plan", {
        "userId": user_id,
        "subjects": [_parse_subject(s) for s in subjects],
        "durationMinutes": minutes,
        "pattern": pattern,
        "breaksEnabled": not no_breaks,
    })

    if output_format == 'json':
        echo_json(result)
        return

    study_plan = result["plan"]
    click.echo(
        f"学習計画: {study_plan['pattern']['name']} "
        f"({study_plan['block_count']}ブロック x {study_plan['block_minutes']}分)\n"
    )
    rows = []
    for entry in study_plan["entries"]:
        if entry["type"] == "break":
            rows.append(["", "休憩", "", "", entry["duration_minutes"]])
        else:
            rows.append([
                entry["order"],
                entry["subject"],
                entry["focus_topic"],
                entry["activity"],
                entry["duration_minutes"],
            ])
    echo_table(["#", "科目", "トピック", "活動", "分"], rows)
    click.echo(f"\nヒント: {study_plan['tip']}")


@study.command()
@click.argument('user_id')
@click.option('-t', '--topic', 'topics', multiple=True, required=True, help='学習したトピック')
@click.option('--minutes', type=float, required=True, help='学習時間（分）')
@click.option('--score', type=float, help='クイズスコア（0-100）')
@click.option('--notes', help='メモ')
@pass_context
def log(ctx: CLIContext, user_id: str, topics: List[str], minutes: float,
        score: Optional[float], notes: Optional[str]):
    """学習セッションを記録する"""
    input_data: Dict[str, Any] = {
        "userId": user_id,
        "topicsStudied": list(topics),
        "durationMinutes": minutes,
    }
    if score is not None:
        input_data["quizScore"] = score
    if notes:
        input_data["notes"] = notes

    result = ctx.run_tool("log_study_session", input_data)
    click.echo(f"✓ {result['message']}")


@study.command()
@click.argument('user_id')
@click.option('--no-recommendations', is_flag=True, help='推薦を表示しない')
@_format_option()
@pass_context
def progress(ctx: CLIContext, user_id: str, no_recommendations: bool, output_format: str):
    """学習進捗と推薦を表示する"""
    result = ctx.run_tool("get_learning_progress", {
        "userId": user_id,
        "includeRecommendations": not no_recommendations,
    })

    if output_format == 'json':
        echo_json(result)
        return

    report = result.get("progress")
    if report is None:
        click.echo(result.get("message", "学習記録はありません。"))
        return

    click.echo(
        f"ユーザー: {user_id}  セッション数: {report['total_sessions']}  "
        f"合計: {report['total_minutes']:g}分\n"
    )
    echo_table(
        ["トピック", "分", "回数", "平均スコア", "カード", "最終学習"],
        [
            [
                topic,
                stats["total_minutes"],
                stats["session_count"],
                stats["average_score"],
                stats.get("flashcard_count"),
                stats["last_studied"],
            ]
            for topic, stats in report["topic_breakdown"].items()
        ],
    )
    if "recommendations" in report:
        click.echo("")
        echo_list("推薦:", report["recommendations"], empty_message="推薦はありません。")


@study.command()
@_format_option()
@pass_context
def tools(ctx: CLIContext, output_format: str):
    """登録済みツールの一覧を表示する"""
    ctx.initialize()
    definitions = ctx.tool_executor.list_definitions()

    if output_format == 'json':
        echo_json(definitions)
        return

    echo_table(
        ["ツール", "必須入力"],
        [[d["name"], ", ".join(d["input_schema"].get("required", []))] for d in definitions],
    )


@study.command()
@click.argument('tool_name')
@click.option('--input', 'input_json', default='{}', help='ツール入力（JSON文字列）')
@pass_context
def call(ctx: CLIContext, tool_name: str, input_json: str):
    """ツールを名前で直接実行し、結果をJSONで表示する"""
    try:
        input_data = json.loads(input_json)
    except json.JSONDecodeError as e:
        click.echo(f"[エラー] --input のJSONが不正です: {e}", err=True)
        sys.exit(2)

    echo_json(ctx.run_tool(tool_name, input_data))


@study.command('init-db')
@pass_context
def init_db(ctx: CLIContext):
    """PostgreSQL のテーブルを作成する（STUDY_STORE_BACKEND=postgres）"""
    ctx.initialize()

    if ctx.config.store_backend != "postgres":
        click.echo("[エラー] STUDY_STORE_BACKEND=postgres を設定してください", err=True)
        sys.exit(2)

    try:
        ctx.store.ensure_schema()
        if not ctx.store.db.health_check():
            click.echo("⚠ データベースの接続確認に失敗しました", err=True)
            sys.exit(1)
        click.echo("✓ テーブルを作成しました (study_user_state, study_deck)")
    except Exception as e:
        click.echo(f"[エラー] 初期化に失敗しました: {e}", err=True)
        sys.exit(1)


def _parse_subject(value: str) -> Dict[str, Any]:
    """"Math:algebra,geometry" を {"name", "topics"} に変換"""
    name, _, topics = value.partition(":")
    return {
        "name": name.strip(),
        "topics": [t.strip() for t in topics.split(",") if t.strip()],
    }


# 各コマンドを追加
deck_command(study, pass_context)
quiz_command(study, pass_context)


if __name__ == '__main__':
    study()
