"""
インターリーブクイズコマンド実装
"""

import sys
from typing import Any, Dict, Optional

import click

from interleaved_learning.cli.utils.output import echo_json
from interleaved_learning.cli.utils.yaml_loader import (
    YamlValidationError,
    load_yaml,
    validate_quiz_file,
)


def quiz_command(study_group, pass_context):
    """quiz コマンドを study グループに追加"""

    @study_group.command()
    @click.option('-f', '--file', 'file_path', type=click.Path(exists=True), required=True,
                  help='クイズYAMLファイル')
    @click.option('--length', 'quiz_length', type=int, help='全体の出題数')
    @click.option('--per-topic', 'questions_per_topic', type=int, help='トピックごとの出題数')
    @click.option('--shuffle-options', is_flag=True, help='選択肢もシャッフルする')
    @click.option('--no-hints', is_flag=True, help='出題元トピックを表示しない')
    @click.option('--show-answers', is_flag=True, help='解答キーも表示する')
    @click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
                  default='text', help='出力形式')
    @pass_context
    def quiz(ctx, file_path: str, quiz_length: Optional[int], questions_per_topic: Optional[int],
             shuffle_options: bool, no_hints: bool, show_answers: bool, output_format: str):
        """YAMLファイルの設問からインターリーブクイズを生成する

        \b
        クイズファイルの形式:
          topics:
            - name: "Algebra"
              questions:
                - question: "2x = 6. x = ?"
                  options: ["2", "3", "6"]
                  correct_index: 1
          questions_per_topic: 2

        \b
        例:
          study quiz -f quizzes/week1.yaml --shuffle-options --show-answers
        """
        try:
            data = load_yaml(file_path)
            validate_quiz_file(data)
        except YamlValidationError as e:
            click.echo(f"[エラー] クイズの形式が正しくありません: {e}", err=True)
            sys.exit(2)

        input_data: Dict[str, Any] = {
            "topics": data["topics"],
            "shuffleOptions": shuffle_options or bool(data.get("shuffle_options", False)),
            "includeTopicHints": not no_hints,
        }
        length = quiz_length if quiz_length is not None else data.get("quiz_length")
        per_topic = questions_per_topic if questions_per_topic is not None else data.get("questions_per_topic")
        if length is not None:
            input_data["quizLength"] = length
        if per_topic is not None:
            input_data["questionsPerTopic"] = per_topic

        result = ctx.run_tool("generate_interleaved_quiz", input_data)

        if output_format == 'json':
            echo_json(result)
            return

        body = result["quiz"]
        click.echo(f"クイズ ({body['total_questions']}問)")
        click.echo(f"{body['instructions']}\n")
        for question in body["questions"]:
            hint = f"[{question['topic']}] " if "topic" in question else ""
            click.echo(f"Q{question['number']}. {hint}{question['question']}")
            for idx, option in enumerate(question.get("options", [])):
                click.echo(f"    {idx}) {option}")

        if show_answers:
            click.echo("\n解答:")
            for answer in result["answer_key"]:
                index = "" if answer["correct_index"] is None else f"{answer['correct_index']}) "
                click.echo(f"  Q{answer['number']}. {index}{answer['answer']}")
