"""YAML loading and minimal schema validation for CLI."""

from __future__ import annotations

from typing import Any, Dict, List

import yaml


class YamlValidationError(ValueError):
    """YAML schema validation error."""


def load_yaml(path: str) -> Dict[str, Any]:
    """Load YAML file and return data."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise YamlValidationError("YAMLのルートはオブジェクトである必要があります")
    return data


def validate_quiz_file(data: Dict[str, Any]) -> None:
    """Validate quiz YAML data.

    Expected form::

        topics:
          - name: Algebra
            questions:
              - question: "2x = 6, x = ?"
                options: ["2", "3", "6"]
                correct_index: 1
        questions_per_topic: 2
    """
    _require_fields(data, ["topics"])

    topics = data["topics"]
    if not isinstance(topics, list) or not topics:
        raise YamlValidationError("topics は配列で指定してください")

    for topic in topics:
        if not isinstance(topic, dict):
            raise YamlValidationError("topics の要素はオブジェクトで指定してください")
        _require_fields(topic, ["name", "questions"], prefix="topics")
        if not isinstance(topic["name"], str) or not topic["name"]:
            raise YamlValidationError("topic.name は文字列で指定してください")
        if not isinstance(topic["questions"], list):
            raise YamlValidationError("topic.questions は配列で指定してください")
        for question in topic["questions"]:
            if not isinstance(question, dict):
                raise YamlValidationError("questions の要素はオブジェクトで指定してください")
            _require_fields(question, ["question"], prefix="questions")
            options = question.get("options")
            if options is not None and not isinstance(options, list):
                raise YamlValidationError("question.options は配列で指定してください")

    for key in ("quiz_length", "questions_per_topic"):
        value = data.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise YamlValidationError(f"{key} は整数で指定してください")


def validate_deck_file(data: Dict[str, Any]) -> None:
    """Validate flashcard deck YAML data."""
    _require_fields(data, ["deck_name", "cards"])

    if not isinstance(data["deck_name"], str) or not data["deck_name"]:
        raise YamlValidationError("deck_name は文字列で指定してください")

    cards = data["cards"]
    if not isinstance(cards, list) or not cards:
        raise YamlValidationError("cards は配列で指定してください")
    for card in cards:
        if not isinstance(card, dict):
            raise YamlValidationError("cards の要素はオブジェクトで指定してください")
        _require_fields(card, ["front", "back", "topic"], prefix="cards")
        for name in ("front", "back", "topic"):
            if not isinstance(card[name], str) or not card[name]:
                raise YamlValidationError(f"card.{name} は文字列で指定してください")


def _require_fields(data: Dict[str, Any], fields: List[str], prefix: str | None = None) -> None:
    missing = [field for field in fields if field not in data]
    if missing:
        label = f"{prefix}." if prefix else ""
        raise YamlValidationError(f"必須フィールドが不足しています: {', '.join(label + f for f in missing)}")
