# インターリーブ学習サービス
# 7つのツール操作を、パターン生成・クイズ・カード抽選・進捗集計とストアに結びつける

"""
インターリーブ学習サービスモジュール

操作（ツールと1対1に対応）:
    create_study_plan          : 科目を登録し、パターンに従った時間割を生成
    generate_interleaved_quiz  : 複数トピックの設問を混合したクイズと解答キーを生成
    create_flashcard_deck      : デッキを保存し、カードをユーザーの科目にも登録
    get_shuffled_flashcards    : デッキまたはユーザーのカードを方針に従って抽選
    log_study_session          : 学習セッションを記録
    get_learning_progress      : トピック別統計と推薦を取得
    get_interleaving_patterns  : パターンカタログを取得

エラー処理:
    失敗はすべて結果データとして返す（例外にしない）。
    - not_found    : 参照したユーザー/デッキにデータがない
    - empty_result : フィルタの結果が0件
    入力値の範囲チェックはツール層（interleaved_learning.tools）の責務。

使用例:
    service = StudyService(InMemoryStudyStore())
    service.log_study_session("user_01", ["Math"], 30, quiz_score=60)
    service.get_learning_progress("user_01")
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.core.study_store import StudyStore
from interleaved_learning.interleaving.flashcard_sampler import FlashcardSampler
from interleaved_learning.interleaving.pattern_catalog import build_catalog, get_pattern_info
from interleaved_learning.interleaving.pattern_engine import PatternEngine
from interleaved_learning.interleaving.progress_aggregator import ProgressAggregator
from interleaved_learning.interleaving.quiz_assembler import QuizAssembler, QuizTopic
from interleaved_learning.interleaving.schedule_builder import ScheduleBuilder
from interleaved_learning.models.study import (
    Deck,
    Flashcard,
    QuizResult,
    StudySession,
    UserState,
)

logger = logging.getLogger(__name__)

ERROR_NOT_FOUND = "not_found"
ERROR_EMPTY_RESULT = "empty_result"

PLAN_TIP = "Take a short break between blocks. Review the previous topic briefly before switching."
FLASHCARD_TIP = "Cards are interleaved across topics. Try to recall the answer before flipping!"
NO_PROGRESS_MESSAGE = "No study sessions found. Start studying to track your progress!"


def _make_result(
    success: bool,
    data: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
    error_type: Optional[str] = None,
) -> Dict[str, Any]:
    """操作結果の辞書を生成"""
    result: Dict[str, Any] = {"success": success}
    if data:
        result.update(data)
    if error is not None:
        result["error"] = error
    if error_type is not None:
        result["error_type"] = error_type
    return result


class StudyService:
    """インターリーブ学習サービス

    プロセス起動時に生成し、終了時に close() でストアを解放する。

    Attributes:
        store: StudyStore インスタンス
        config: StudyConfig インスタンス
        pattern_engine: PatternEngine インスタンス
        schedule_builder: ScheduleBuilder インスタンス
        quiz_assembler: QuizAssembler インスタンス
        flashcard_sampler: FlashcardSampler インスタンス
        progress_aggregator: ProgressAggregator インスタンス
    """

    def __init__(
        self,
        store: StudyStore,
        config: Optional[StudyConfig] = None,
        random_source: Optional[RandomSource] = None,
    ):
        """StudyService を初期化

        Args:
            store: StudyStore インスタンス
            config: StudyConfig インスタンス（省略時はデフォルト設定を使用）
            random_source: 全コンポーネントで共有する RandomSource（省略時はシードなし）
        """
        self.store = store
        self.config = config or StudyConfig()
        random_source = random_source or RandomSource()

        self.pattern_engine = PatternEngine(random_source, self.config)
        self.schedule_builder = ScheduleBuilder(self.config)
        self.quiz_assembler = QuizAssembler(random_source, self.config)
        self.flashcard_sampler = FlashcardSampler(random_source)
        self.progress_aggregator = ProgressAggregator(self.config)

    def close(self) -> None:
        """ストアを解放"""
        self.store.close()

    def __enter__(self) -> "StudyService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # 学習計画
    # =========================================================================

    def create_study_plan(
        self,
        user_id: str,
        subjects: Sequence[Union[str, Dict[str, Any]]],
        duration_minutes: int,
        pattern: Any = "systematic_short",
        breaks_enabled: bool = True,
    ) -> Dict[str, Any]:
        """インターリーブ学習計画を作成

        Args:
            user_id: ユーザーID
            subjects: 科目のリスト（{"name", "topics"} または科目名の文字列）
            duration_minutes: 学習に割り当てる合計時間（分）
            pattern: パターン識別子（未知の場合は systematic_short）
            breaks_enabled: 休憩を挿入するか

        Returns:
            {"success": True, "plan": {...}} または失敗結果
        """
        subject_topics = _normalize_subjects(subjects)
        if not subject_topics:
            return _make_result(False, error="No subjects provided", error_type=ERROR_EMPTY_RESULT)

        def register_subjects(state: UserState) -> None:
            for name, topics in subject_topics.items():
                state.ensure_subject(name).add_topics(topics)

        self.store.upsert(user_id, register_subjects)

        names = list(subject_topics.keys())
        resolved = self.pattern_engine.resolve_pattern(pattern)
        sequence = self.pattern_engine.generate(
            names, resolved, len(names) * self.config.blocks_per_subject
        )
        schedule = self.schedule_builder.build(
            sequence, duration_minutes, breaks_enabled, subject_topics
        )

        logger.info(
            f"学習計画作成: user={user_id}, subjects={len(names)}, "
            f"pattern={resolved.value}, blocks={len(sequence)}"
        )

        return _make_result(True, {
            "plan": {
                "user_id": user_id,
                "pattern": get_pattern_info(resolved),
                "duration_minutes": duration_minutes,
                "breaks_enabled": breaks_enabled,
                **schedule.to_dict(),
                "tip": PLAN_TIP,
            }
        })

    # =========================================================================
    # クイズ
    # =========================================================================

    def generate_interleaved_quiz(
        self,
        topics: Sequence[Union[QuizTopic, Dict[str, Any]]],
        quiz_length: Optional[int] = None,
        questions_per_topic: Optional[int] = None,
        shuffle_options: bool = False,
        include_topic_hints: bool = True,
    ) -> Dict[str, Any]:
        """インターリーブクイズを生成

        Args:
            topics: トピックと設問のリスト
            quiz_length: 全体の出題数上限（指定時は questions_per_topic より優先）
            questions_per_topic: トピックごとの出題数上限
            shuffle_options: 選択肢もシャッフルするか
            include_topic_hints: 各設問に出題元トピックを表示するか

        Returns:
            {"success": True, "quiz", "answer_key", "topic_distribution"} または失敗結果
        """
        quiz_topics = [t if isinstance(t, QuizTopic) else QuizTopic.from_dict(t) for t in topics]
        if not any(topic.questions for topic in quiz_topics):
            return _make_result(False, error="No questions provided", error_type=ERROR_EMPTY_RESULT)

        quiz = self.quiz_assembler.assemble(
            quiz_topics,
            questions_per_topic=questions_per_topic,
            quiz_length=quiz_length,
            shuffle_options=shuffle_options,
        )

        logger.info(
            f"クイズ生成: topics={len(quiz_topics)}, questions={len(quiz.items)}, "
            f"shuffle_options={shuffle_options}"
        )
        return _make_result(True, quiz.to_dict(include_topic_hints))

    # =========================================================================
    # フラッシュカード
    # =========================================================================

    def create_flashcard_deck(
        self,
        user_id: str,
        deck_name: str,
        cards: Sequence[Union[Flashcard, Dict[str, Any]]],
    ) -> Dict[str, Any]:
        """フラッシュカードデッキを作成

        デッキ名の索引（全ユーザー共通）に保存し、同じカードをユーザーの科目
        （カードの topic をキーとする）にも登録する。

        Args:
            user_id: ユーザーID
            deck_name: デッキ名（同名デッキは置き換え）
            cards: カードのリスト

        Returns:
            {"success": True, "deck": {...}}
        """
        flashcards = [c if isinstance(c, Flashcard) else Flashcard.from_dict(c) for c in cards]

        self.store.put_deck(deck_name, Deck(name=deck_name, cards=flashcards))

        def register_cards(state: UserState) -> None:
            for card in flashcards:
                state.ensure_subject(card.topic).add_flashcards([card])

        self.store.upsert(user_id, register_cards)

        topic_breakdown: Dict[str, int] = {}
        for card in flashcards:
            topic_breakdown[card.topic] = topic_breakdown.get(card.topic, 0) + 1

        logger.info(
            f"デッキ作成: user={user_id}, deck={deck_name}, cards={len(flashcards)}"
        )
        return _make_result(True, {
            "deck": {
                "name": deck_name,
                "total_cards": len(flashcards),
                "topic_breakdown": topic_breakdown,
                "message": (
                    f'Created deck "{deck_name}" with {len(flashcards)} cards '
                    f"from {len(topic_breakdown)} topics."
                ),
            }
        })

    def get_shuffled_flashcards(
        self,
        user_id: str,
        topics: Optional[Sequence[str]] = None,
        count: Optional[int] = None,
        pattern: Any = "random",
        deck_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """カードを混合方針に従って取得

        Args:
            user_id: ユーザーID
            topics: 対象トピック（省略時は全トピック）
            count: 取得枚数（省略時は全枚数）
            pattern: "random" / "systematic" / "balanced"
            deck_name: デッキ名（指定時はデッキから、省略時はユーザーの科目から取得）

        Returns:
            {"success": True, "cards": [...]} または失敗結果
        """
        if deck_name is not None:
            deck = self.store.get_deck(deck_name)
            if deck is None:
                return _make_result(
                    False,
                    error=f'Deck "{deck_name}" not found. Available decks: {self._available_decks()}',
                    error_type=ERROR_NOT_FOUND,
                )
            pool = list(deck.cards)
            if not pool:
                return _make_result(
                    False,
                    error=f'Deck "{deck_name}" has no flashcards.',
                    error_type=ERROR_NOT_FOUND,
                )
        else:
            state = self.store.get(user_id)
            pool = state.all_flashcards() if state is not None else []
            if not pool:
                return _make_result(
                    False,
                    error=(
                        f'No flashcards found for user "{user_id}". '
                        f"Available decks: {self._available_decks()}"
                    ),
                    error_type=ERROR_NOT_FOUND,
                )

        if topics:
            wanted = set(topics)
            pool = [card for card in pool if card.topic in wanted]
            if not pool:
                return _make_result(
                    False,
                    error=f"No flashcards found for topics: {', '.join(topics)}",
                    error_type=ERROR_EMPTY_RESULT,
                )

        sample = self.flashcard_sampler.sample(pool, count, pattern)

        logger.info(
            f"カード取得: user={user_id}, deck={deck_name}, pattern={pattern}, "
            f"drawn={len(sample.cards)}/{len(pool)}"
        )
        return _make_result(True, {
            "deck_name": deck_name,
            "pattern": str(getattr(pattern, "value", pattern)),
            "total_available": len(pool),
            "cards": sample.to_dict()["cards"],
            "study_tip": FLASHCARD_TIP,
        })

    def _available_decks(self) -> str:
        return ", ".join(self.store.list_deck_names()) or "none"

    # =========================================================================
    # 学習記録・進捗
    # =========================================================================

    def log_study_session(
        self,
        user_id: str,
        topics_studied: Sequence[str],
        duration_minutes: float,
        quiz_score: Optional[float] = None,
        notes: Optional[str] = None,
        current_time: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """学習セッションを記録

        複数トピックを学習した場合は、学習時間をトピック数で均等に割り当てる。
        クイズスコアは各トピックのセッションとクイズ結果ログに記録する。

        Args:
            user_id: ユーザーID
            topics_studied: 学習したトピック（科目名）
            duration_minutes: 学習時間（分）
            quiz_score: クイズスコア（0-100、任意）
            notes: メモ（任意）
            current_time: 記録日時（テスト用、省略時はdatetime.now()）

        Returns:
            {"success": True, "logged": {...}, "message": ...} または失敗結果
        """
        if current_time is None:
            current_time = datetime.now()

        topics = list(dict.fromkeys(topics_studied))
        if not topics:
            return _make_result(False, error="No topics studied", error_type=ERROR_EMPTY_RESULT)

        per_topic_minutes = duration_minutes / len(topics)

        def append_sessions(state: UserState) -> List[StudySession]:
            logged: List[StudySession] = []
            for topic in topics:
                session = StudySession(
                    topic=topic,
                    duration_minutes=per_topic_minutes,
                    date=current_time,
                    quiz_score=quiz_score,
                    notes=notes,
                )
                state.log_session(session)
                if quiz_score is not None:
                    state.subjects[topic].quiz_results.append(
                        QuizResult(topic=topic, score=quiz_score, date=current_time)
                    )
                logged.append(session)
            return logged

        sessions = self.store.upsert(user_id, append_sessions)

        score_text = f" with {quiz_score:g}% quiz score" if quiz_score is not None else ""
        logger.info(
            f"学習記録: user={user_id}, topics={topics}, minutes={duration_minutes}"
        )
        return _make_result(True, {
            "logged": {
                "user_id": user_id,
                "sessions": [s.to_dict() for s in sessions],
            },
            "message": (
                f"Logged {duration_minutes:g} minutes of {', '.join(topics)} study{score_text}."
            ),
        })

    def get_learning_progress(
        self,
        user_id: str,
        include_recommendations: bool = True,
        current_time: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """学習進捗と推薦を取得

        Args:
            user_id: ユーザーID
            include_recommendations: 推薦メッセージを含めるか
            current_time: 現在時刻（テスト用、省略時はdatetime.now()）

        Returns:
            {"success": True, "progress": {...}}。
            セッションがない場合は {"success": True, "progress": None, "message": ...}
        """
        state = self.store.get(user_id)
        sessions = state.session_log() if state is not None else []
        if state is None or not sessions:
            return _make_result(True, {"progress": None, "message": NO_PROGRESS_MESSAGE})

        report = self.progress_aggregator.aggregate(
            sessions,
            flashcard_counts={name: len(s.flashcards) for name, s in state.subjects.items()},
            known_topics=state.subjects.keys(),
            current_time=current_time,
        )
        return _make_result(True, {
            "progress": {
                "user_id": user_id,
                **report.to_dict(include_recommendations),
            }
        })

    def get_interleaving_patterns(self) -> Dict[str, Any]:
        """パターンカタログを取得（毎回同一の内容）"""
        return _make_result(True, build_catalog())


def _normalize_subjects(
    subjects: Sequence[Union[str, Dict[str, Any]]],
) -> Dict[str, List[str]]:
    """科目指定を 科目名 -> サブトピック の順序付き辞書に正規化"""
    normalized: Dict[str, List[str]] = {}
    for subject in subjects:
        if isinstance(subject, str):
            name, topics = subject, []
        else:
            name, topics = subject["name"], list(subject.get("topics") or [])
        merged = normalized.setdefault(name, [])
        for topic in topics:
            if topic not in merged:
                merged.append(topic)
    return normalized
