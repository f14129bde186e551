# インターリーブ学習モジュール
# パターン生成、時間割構築、クイズ組み立て、カード抽選、進捗集計、サービス

from interleaved_learning.interleaving.pattern_catalog import (
    DEFAULT_PATTERN,
    InterleavingPattern,
    build_catalog,
    get_pattern_info,
    list_patterns,
)
from interleaved_learning.interleaving.pattern_engine import PatternEngine
from interleaved_learning.interleaving.schedule_builder import (
    ScheduleBuilder,
    ScheduleEntry,
    StudySchedule,
)
from interleaved_learning.interleaving.quiz_assembler import (
    AssembledQuiz,
    QuizAssembler,
    QuizItem,
    QuizTopic,
)
from interleaved_learning.interleaving.flashcard_sampler import (
    FlashcardSampler,
    SampleResult,
    SamplingPolicy,
)
from interleaved_learning.interleaving.progress_aggregator import (
    ProgressAggregator,
    ProgressReport,
    TopicStats,
)
from interleaved_learning.interleaving.study_service import StudyService

__all__ = [
    # Patterns
    "DEFAULT_PATTERN",
    "InterleavingPattern",
    "PatternEngine",
    "build_catalog",
    "get_pattern_info",
    "list_patterns",
    # Schedule
    "ScheduleBuilder",
    "ScheduleEntry",
    "StudySchedule",
    # Quiz
    "AssembledQuiz",
    "QuizAssembler",
    "QuizItem",
    "QuizTopic",
    # Flashcards
    "FlashcardSampler",
    "SampleResult",
    "SamplingPolicy",
    # Progress
    "ProgressAggregator",
    "ProgressReport",
    "TopicStats",
    # Service
    "StudyService",
]
