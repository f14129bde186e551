# 学習ツール定義
# 7つの学習ツールの JSON Schema 定義、入力検証、ハンドラー生成
"""
学習ツールモジュール

ツール一覧:
    create_study_plan          : インターリーブ学習計画の作成
    generate_interleaved_quiz  : 複数トピック混合クイズの生成
    create_flashcard_deck      : フラッシュカードデッキの作成
    get_shuffled_flashcards    : 混合順でのカード取得
    log_study_session          : 学習セッションの記録
    get_learning_progress      : 学習進捗と推薦の取得
    get_interleaving_patterns  : パターンカタログの取得

設計方針:
- 入力検証: 範囲外の値（学習時間、スコア、パターン）はここで ToolInputError として拒否し、
  StudyService には検証済みの値だけを渡す
- キー名: 入力は camelCase（userId, deckName 等）と snake_case（user_id 等）の両方を受け付ける
- 出力: StudyService の結果辞書をそのまま返す

使用例:
    service = StudyService(InMemoryStudyStore())
    executor = create_tool_executor_with_study_tools(service)
    executor.execute_tool("log_study_session", {
        "userId": "user_01", "topicsStudied": ["Math"], "durationMinutes": 30,
    })
"""

import logging
from typing import Any, Dict, List, Optional

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.interleaving.flashcard_sampler import SamplingPolicy
from interleaved_learning.interleaving.pattern_catalog import (
    DEFAULT_PATTERN,
    InterleavingPattern,
)
from interleaved_learning.interleaving.study_service import StudyService
from interleaved_learning.tools.tool_executor import (
    Tool,
    ToolExecutor,
    ToolHandler,
    ToolInputError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# 入力検証ヘルパー
# =============================================================================

_MISSING = object()


def _lookup(input_data: Dict[str, Any], *keys: str) -> Any:
    """候補キーのうち最初に存在するものの値を返す（なければ _MISSING）"""
    for key in keys:
        if key in input_data and input_data[key] is not None:
            return input_data[key]
    return _MISSING


def validate_string(input_data: Dict[str, Any], *keys: str, required: bool = True) -> Optional[str]:
    """空でない文字列を取得

    Raises:
        ToolInputError: 必須なのに存在しない、または文字列でない場合
    """
    value = _lookup(input_data, *keys)
    if value is _MISSING:
        if required:
            raise ToolInputError(f"{keys[0]} は必須です")
        return None
    if not isinstance(value, str) or not value.strip():
        raise ToolInputError(f"{keys[0]} は空でない文字列である必要があります")
    return value


def validate_number(
    input_data: Dict[str, Any],
    *keys: str,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    integer: bool = False,
    required: bool = False,
) -> Optional[float]:
    """数値を取得して範囲を検証

    bool は数値として扱わない。

    Raises:
        ToolInputError: 型または範囲が不正な場合
    """
    value = _lookup(input_data, *keys)
    if value is _MISSING:
        if required:
            raise ToolInputError(f"{keys[0]} は必須です")
        return None

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolInputError(f"{keys[0]} は数値である必要があります: {value!r}")
    if integer:
        if isinstance(value, float) and not value.is_integer():
            raise ToolInputError(f"{keys[0]} は整数である必要があります: {value!r}")
        value = int(value)
    if minimum is not None and value < minimum:
        raise ToolInputError(f"{keys[0]} は {minimum} 以上である必要があります: {value}")
    if maximum is not None and value > maximum:
        raise ToolInputError(f"{keys[0]} は {maximum} 以下である必要があります: {value}")
    return value


def validate_bool(input_data: Dict[str, Any], *keys: str, default: bool) -> bool:
    value = _lookup(input_data, *keys)
    if value is _MISSING:
        return default
    if not isinstance(value, bool):
        raise ToolInputError(f"{keys[0]} は真偽値である必要があります: {value!r}")
    return value


def validate_list(
    input_data: Dict[str, Any],
    *keys: str,
    min_items: int = 0,
    required: bool = True,
) -> Optional[List[Any]]:
    """リストを取得して要素数を検証"""
    value = _lookup(input_data, *keys)
    if value is _MISSING:
        if required:
            raise ToolInputError(f"{keys[0]} は必須です")
        return None
    if not isinstance(value, list):
        raise ToolInputError(f"{keys[0]} はリストである必要があります")
    if len(value) < min_items:
        raise ToolInputError(f"{keys[0]} は {min_items} 件以上必要です（{len(value)} 件）")
    return value


def validate_string_list(items: List[Any], field_name: str) -> List[str]:
    for item in items:
        if not isinstance(item, str) or not item.strip():
            raise ToolInputError(f"{field_name} の要素は空でない文字列である必要があります: {item!r}")
    return items


def _validate_object(item: Any, field_name: str, required: List[str]) -> Dict[str, Any]:
    if not isinstance(item, dict):
        raise ToolInputError(f"{field_name} の要素はオブジェクトである必要があります: {item!r}")
    missing = [name for name in required if name not in item]
    if missing:
        raise ToolInputError(f"{field_name} の要素に必須フィールドがありません: {', '.join(missing)}")
    return item


def _validate_subjects(subjects: List[Any]) -> List[Dict[str, Any]]:
    normalized = []
    for subject in subjects:
        if isinstance(subject, str):
            subject = {"name": subject, "topics": []}
        subject = _validate_object(subject, "subjects", ["name"])
        validate_string(subject, "name")
        topics = validate_list(subject, "topics", required=False) or []
        validate_string_list(topics, "subjects.topics")
        normalized.append({"name": subject["name"], "topics": topics})
    return normalized


def _validate_quiz_topics(topics: List[Any]) -> List[Dict[str, Any]]:
    for topic in topics:
        _validate_object(topic, "topics", ["name", "questions"])
        validate_string(topic, "name")
        questions = validate_list(topic, "questions")
        for question in questions:
            _validate_object(question, "questions", ["question"])
            options = validate_list(question, "options", required=False) or []
            validate_string_list(options, "questions.options")
            correct_index = validate_number(
                question, "correctIndex", "correct_index", minimum=0, integer=True
            )
            if correct_index is not None and correct_index >= len(options):
                raise ToolInputError(
                    f"correctIndex が選択肢の範囲外です: {correct_index}（選択肢 {len(options)} 件）"
                )
    return topics


def _validate_cards(cards: List[Any]) -> List[Dict[str, Any]]:
    for card in cards:
        _validate_object(card, "cards", ["front", "back", "topic"])
        for name in ("front", "back", "topic"):
            validate_string(card, name)
    return cards


# =============================================================================
# ツール定義
# =============================================================================

_USER_ID_SCHEMA = {"type": "string", "description": "User identifier"}

CREATE_STUDY_PLAN_TOOL = Tool(
    name="create_study_plan",
    description=(
        "Create an interleaved study schedule that mixes multiple subjects according "
        "to a named interleaving pattern, with optional breaks."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "userId": _USER_ID_SCHEMA,
            "subjects": {
                "type": "array",
                "description": "Subjects to study (minimum 2), each with optional sub-topics",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "topics": {"type": "array", "items": {"type": "string"}},
                    },
                    "required": ["name"],
                },
                "minItems": 2,
            },
            "durationMinutes": {
                "type": "integer",
                "description": "Total study time in minutes (minimum 30)",
                "minimum": 30,
            },
            "pattern": {
                "type": "string",
                "enum": [p.value for p in InterleavingPattern],
                "default": DEFAULT_PATTERN.value,
                "description": "Interleaving pattern to use",
            },
            "breaksEnabled": {
                "type": "boolean",
                "default": True,
                "description": "Insert a short break after every few blocks",
            },
        },
        "required": ["userId", "subjects", "durationMinutes"],
    },
)

GENERATE_INTERLEAVED_QUIZ_TOOL = Tool(
    name="generate_interleaved_quiz",
    description=(
        "Generate a quiz that mixes questions from multiple topics, with an answer key "
        "in presentation order."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "topics": {
                "type": "array",
                "description": "Topics with their questions",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "questions": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "question": {"type": "string"},
                                    "options": {"type": "array", "items": {"type": "string"}},
                                    "correctIndex": {"type": "integer", "minimum": 0},
                                    "answer": {"type": "string"},
                                },
                                "required": ["question"],
                            },
                        },
                    },
                    "required": ["name", "questions"],
                },
                "minItems": 1,
            },
            "quizLength": {
                "type": "integer",
                "minimum": 1,
                "description": "Total number of questions (takes precedence over questionsPerTopic)",
            },
            "questionsPerTopic": {
                "type": "integer",
                "minimum": 1,
                "maximum": 10,
                "description": "Number of questions per topic",
            },
            "shuffleOptions": {"type": "boolean", "default": False},
            "includeTopicHints": {"type": "boolean", "default": True},
        },
        "required": ["topics"],
    },
)

CREATE_FLASHCARD_DECK_TOOL = Tool(
    name="create_flashcard_deck",
    description="Create a named flashcard deck with cards from multiple topics.",
    input_schema={
        "type": "object",
        "properties": {
            "userId": _USER_ID_SCHEMA,
            "deckName": {"type": "string", "description": "Name for the flashcard deck"},
            "cards": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "front": {"type": "string"},
                        "back": {"type": "string"},
                        "topic": {"type": "string"},
                    },
                    "required": ["front", "back", "topic"],
                },
            },
        },
        "required": ["userId", "deckName", "cards"],
    },
)

GET_SHUFFLED_FLASHCARDS_TOOL = Tool(
    name="get_shuffled_flashcards",
    description=(
        "Retrieve flashcards in interleaved order, from a deck or from all of the "
        "user's subjects."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "userId": _USER_ID_SCHEMA,
            "deckName": {"type": "string", "description": "Deck to draw from (optional)"},
            "topics": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Restrict to these topics",
            },
            "count": {"type": "integer", "minimum": 1, "description": "Number of cards"},
            "pattern": {
                "type": "string",
                "enum": [p.value for p in SamplingPolicy],
                "default": SamplingPolicy.RANDOM.value,
            },
        },
        "required": ["userId"],
    },
)

LOG_STUDY_SESSION_TOOL = Tool(
    name="log_study_session",
    description="Log a completed study session for progress tracking.",
    input_schema={
        "type": "object",
        "properties": {
            "userId": _USER_ID_SCHEMA,
            "topicsStudied": {
                "type": "array",
                "items": {"type": "string"},
                "minItems": 1,
                "description": "Subjects covered in the session",
            },
            "durationMinutes": {"type": "number", "minimum": 1, "description": "Duration in minutes"},
            "quizScore": {
                "type": "number",
                "minimum": 0,
                "maximum": 100,
                "description": "Quiz score percentage if applicable",
            },
            "notes": {"type": "string"},
        },
        "required": ["userId", "topicsStudied", "durationMinutes"],
    },
)

GET_LEARNING_PROGRESS_TOOL = Tool(
    name="get_learning_progress",
    description="Get per-topic study statistics and recommendations for a user.",
    input_schema={
        "type": "object",
        "properties": {
            "userId": _USER_ID_SCHEMA,
            "includeRecommendations": {"type": "boolean", "default": True},
        },
        "required": ["userId"],
    },
)

GET_INTERLEAVING_PATTERNS_TOOL = Tool(
    name="get_interleaving_patterns",
    description="Get the available interleaving patterns with benefits and tips.",
    input_schema={"type": "object", "properties": {}},
)

STUDY_TOOLS = [
    CREATE_STUDY_PLAN_TOOL,
    GENERATE_INTERLEAVED_QUIZ_TOOL,
    CREATE_FLASHCARD_DECK_TOOL,
    GET_SHUFFLED_FLASHCARDS_TOOL,
    LOG_STUDY_SESSION_TOOL,
    GET_LEARNING_PROGRESS_TOOL,
    GET_INTERLEAVING_PATTERNS_TOOL,
]


# =============================================================================
# ハンドラー生成
# =============================================================================

def create_study_plan_handler(service: StudyService, config: Optional[StudyConfig] = None) -> ToolHandler:
    """create_study_plan ツールのハンドラーを生成"""
    config = config or service.config

    def handler(input_data: Dict[str, Any]) -> Dict[str, Any]:
        user_id = validate_string(input_data, "userId", "user_id")
        subjects = _validate_subjects(
            validate_list(input_data, "subjects", min_items=config.min_plan_subjects)
        )
        duration = validate_number(
            input_data, "durationMinutes", "duration_minutes", "duration",
            minimum=config.min_plan_minutes, integer=True, required=True,
        )
        pattern = validate_string(input_data, "pattern", required=False) or DEFAULT_PATTERN.value
        if InterleavingPattern.parse(pattern) is None:
            raise ToolInputError(f"未知のパターンです: {pattern}")
        breaks_enabled = validate_bool(input_data, "breaksEnabled", "breaks_enabled", default=True)

        return service.create_study_plan(
            user_id, subjects, duration, pattern=pattern, breaks_enabled=breaks_enabled,
        )

    return handler


def create_generate_quiz_handler(service: StudyService, config: Optional[StudyConfig] = None) -> ToolHandler:
    """generate_interleaved_quiz ツールのハンドラーを生成"""
    config = config or service.config

    def handler(input_data: Dict[str, Any]) -> Dict[str, Any]:
        topics = _validate_quiz_topics(validate_list(input_data, "topics", min_items=1))
        quiz_length = validate_number(
            input_data, "quizLength", "quiz_length", minimum=1, integer=True,
        )
        questions_per_topic = validate_number(
            input_data, "questionsPerTopic", "questions_per_topic",
            minimum=1, maximum=config.max_questions_per_topic, integer=True,
        )
        return service.generate_interleaved_quiz(
            topics,
            quiz_length=quiz_length,
            questions_per_topic=questions_per_topic,
            shuffle_options=validate_bool(input_data, "shuffleOptions", "shuffle_options", default=False),
            include_topic_hints=validate_bool(
                input_data, "includeTopicHints", "include_topic_hints", default=True
            ),
        )

    return handler


def create_flashcard_deck_handler(service: StudyService) -> ToolHandler:
    """create_flashcard_deck ツールのハンドラーを生成"""

    def handler(input_data: Dict[str, Any]) -> Dict[str, Any]:
        user_id = validate_string(input_data, "userId", "user_id")
        deck_name = validate_string(input_data, "deckName", "deck_name")
        cards = _validate_cards(validate_list(input_data, "cards"))
        return service.create_flashcard_deck(user_id, deck_name, cards)

    return handler


def create_shuffled_flashcards_handler(service: StudyService) -> ToolHandler:
    """get_shuffled_flashcards ツールのハンドラーを生成"""

    def handler(input_data: Dict[str, Any]) -> Dict[str, Any]:
        user_id = validate_string(input_data, "userId", "user_id")
        deck_name = validate_string(input_data, "deckName", "deck_name", required=False)
        topics = validate_list(input_data, "topics", required=False)
        if topics is not None:
            validate_string_list(topics, "topics")
        count = validate_number(input_data, "count", minimum=1, integer=True)
        pattern = validate_string(input_data, "pattern", required=False) or SamplingPolicy.RANDOM.value
        try:
            policy = SamplingPolicy(pattern)
        except ValueError:
            raise ToolInputError(f"未知のカード混合方針です: {pattern}") from None

        return service.get_shuffled_flashcards(
            user_id, topics=topics, count=count, pattern=policy, deck_name=deck_name,
        )

    return handler


def create_log_session_handler(service: StudyService, config: Optional[StudyConfig] = None) -> ToolHandler:
    """log_study_session ツールのハンドラーを生成

    単一科目の "subject" キーも topicsStudied の1件として受け付ける。
    """
    config = config or service.config

    def handler(input_data: Dict[str, Any]) -> Dict[str, Any]:
        user_id = validate_string(input_data, "userId", "user_id")
        if _lookup(input_data, "topicsStudied", "topics_studied") is _MISSING and "subject" in input_data:
            topics = [validate_string(input_data, "subject")]
        else:
            topics = validate_string_list(
                validate_list(input_data, "topicsStudied", "topics_studied", min_items=1),
                "topicsStudied",
            )
        duration = validate_number(
            input_data, "durationMinutes", "duration_minutes", "duration",
            minimum=config.min_session_minutes, required=True,
        )
        quiz_score = validate_number(input_data, "quizScore", "quiz_score", minimum=0, maximum=100)
        notes = _lookup(input_data, "notes")
        if notes is not _MISSING and not isinstance(notes, str):
            raise ToolInputError("notes は文字列である必要があります")

        return service.log_study_session(
            user_id,
            topics,
            duration,
            quiz_score=quiz_score,
            notes=None if notes is _MISSING else notes,
        )

    return handler


def create_learning_progress_handler(service: StudyService) -> ToolHandler:
    """get_learning_progress ツールのハンドラーを生成"""

    def handler(input_data: Dict[str, Any]) -> Dict[str, Any]:
        user_id = validate_string(input_data, "userId", "user_id")
        include = validate_bool(
            input_data, "includeRecommendations", "include_recommendations", default=True
        )
        return service.get_learning_progress(user_id, include_recommendations=include)

    return handler


def create_interleaving_patterns_handler(service: StudyService) -> ToolHandler:
    """get_interleaving_patterns ツールのハンドラーを生成"""

    def handler(input_data: Dict[str, Any]) -> Dict[str, Any]:
        return service.get_interleaving_patterns()

    return handler


def create_tool_executor_with_study_tools(service: StudyService) -> ToolExecutor:
    """学習ツール付きの ToolExecutor を生成

    Args:
        service: StudyService インスタンス

    Returns:
        ToolExecutor: 7つの学習ツール登録済みのインスタンス
    """
    executor = ToolExecutor()
    handlers = {
        CREATE_STUDY_PLAN_TOOL.name: create_study_plan_handler(service),
        GENERATE_INTERLEAVED_QUIZ_TOOL.name: create_generate_quiz_handler(service),
        CREATE_FLASHCARD_DECK_TOOL.name: create_flashcard_deck_handler(service),
        GET_SHUFFLED_FLASHCARDS_TOOL.name: create_shuffled_flashcards_handler(service),
        LOG_STUDY_SESSION_TOOL.name: create_log_session_handler(service),
        GET_LEARNING_PROGRESS_TOOL.name: create_learning_progress_handler(service),
        GET_INTERLEAVING_PATTERNS_TOOL.name: create_interleaving_patterns_handler(service),
    }
    for tool in STUDY_TOOLS:
        executor.register_tool(tool, handlers[tool.name])

    logger.info(f"学習ツール登録完了: {executor.list_tools()}")
    return executor
