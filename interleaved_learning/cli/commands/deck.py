"""
フラッシュカードデッキコマンド実装
"""

import sys
from typing import Any, Dict, List, Optional

import click

from interleaved_learning.cli.utils.output import echo_json, echo_table
from interleaved_learning.cli.utils.yaml_loader import (
    YamlValidationError,
    load_yaml,
    validate_deck_file,
)
from interleaved_learning.interleaving.flashcard_sampler import SamplingPolicy


def deck_command(study_group, pass_context):
    """deck コマンドグループを study グループに追加"""

    @study_group.group()
    def deck():
        """フラッシュカードデッキを作成・出題する"""

    @deck.command()
    @click.argument('user_id')
    @click.option('-f', '--file', 'file_path', type=click.Path(exists=True), required=True,
                  help='デッキYAMLファイル')
    @pass_context
    def create(ctx, user_id: str, file_path: str):
        """YAMLファイルからデッキを作成する

        \b
        デッキファイルの形式:
          deck_name: "biology-basics"
          cards:
            - front: "What does the mitochondria do?"
              back: "Produces ATP"
              topic: "Biology"
        """
        try:
            data = load_yaml(file_path)
            validate_deck_file(data)
        except YamlValidationError as e:
            click.echo(f"[エラー] デッキの形式が正しくありません: {e}", err=True)
            sys.exit(2)

        result = ctx.run_tool("create_flashcard_deck", {
            "userId": user_id,
            "deckName": data["deck_name"],
            "cards": data["cards"],
        })

        summary = result["deck"]
        click.echo(f"✓ {summary['message']}")
        echo_table(
            ["トピック", "枚数"],
            [[topic, count] for topic, count in summary["topic_breakdown"].items()],
        )

    @deck.command()
    @click.argument('user_id')
    @click.option('--deck', 'deck_name', help='デッキ名（省略時はユーザーの全カード）')
    @click.option('-t', '--topic', 'topics', multiple=True, help='対象トピック')
    @click.option('--count', type=int, help='取得枚数')
    @click.option('--pattern', type=click.Choice([p.value for p in SamplingPolicy]),
                  default=SamplingPolicy.RANDOM.value, help='混合方針')
    @click.option('--format', 'output_format', type=click.Choice(['table', 'json']),
                  default='table', help='出力形式')
    @pass_context
    def draw(ctx, user_id: str, deck_name: Optional[str], topics: List[str],
             count: Optional[int], pattern: str, output_format: str):
        """カードを混合順で取得する"""
        input_data: Dict[str, Any] = {"userId": user_id, "pattern": pattern}
        if deck_name:
            input_data["deckName"] = deck_name
        if topics:
            input_data["topics"] = list(topics)
        if count is not None:
            input_data["count"] = count

        result = ctx.run_tool("get_shuffled_flashcards", input_data)

        if output_format == 'json':
            echo_json(result)
            return

        click.echo(f"{len(result['cards'])}/{result['total_available']} 枚 ({result['pattern']})\n")
        echo_table(
            ["#", "トピック", "表", "裏"],
            [[c["number"], c["topic"], c["front"], c["back"]] for c in result["cards"]],
        )
        click.echo(f"\nヒント: {result['study_tip']}")
