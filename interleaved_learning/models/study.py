# 学習状態モデル定義
# ユーザーごとの科目・フラッシュカード・学習ログ、および名前付きデッキのデータクラス

"""
学習状態モデル

ストアに保存されるスナップショットを表現する。データベースのテーブルではなく、
StudyStore が JSON として丸ごと保存・復元する単位。

エンティティ:
- Flashcard: {front, back, topic}。作成後は不変
- Question: クイズの設問（選択式または記述式）
- StudySession: ユーザー単位の追記専用ログ（記録順を保持し、並べ替えない）
- QuizResult: 科目単位の追記専用ログ
- Subject: 科目（ユーザー内で name が一意）。カード・クイズ結果を所有
- Deck: 名前付きデッキ（デッキ名はユーザーをまたいで一意）
- UserState: ユーザー1人分の科目マップとセッションログ
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Flashcard:
    """フラッシュカード（不変）"""

    front: str
    back: str
    topic: str

    def to_dict(self) -> Dict[str, Any]:
        return {"front": self.front, "back": self.back, "topic": self.topic}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Flashcard:
        return cls(
            front=data["front"],
            back=data["back"],
            topic=data["topic"],
        )


@dataclass
class Question:
    """クイズの設問

    Attributes:
        question: 問題文
        options: 選択肢（記述式の場合は空）
        correct_index: 正解の選択肢インデックス（0始まり）
        answer: 正解テキスト（correct_index と併用可）
    """

    question: str
    options: List[str] = field(default_factory=list)
    correct_index: Optional[int] = None
    answer: Optional[str] = None

    @property
    def is_multiple_choice(self) -> bool:
        return bool(self.options)

    def resolve_correct_index(self) -> Optional[int]:
        """正解の選択肢インデックスを解決

        correct_index が範囲内ならそれを、なければ answer と一致する選択肢を探す。

        Returns:
            インデックス（選択式でない、または解決できない場合は None）
        """
        if not self.options:
            return None
        if self.correct_index is not None and 0 <= self.correct_index < len(self.options):
            return self.correct_index
        if self.answer is not None and self.answer in self.options:
            return self.options.index(self.answer)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Question:
        """辞書から作成（camelCase の correctIndex も受け付ける）"""
        correct_index = data.get("correct_index", data.get("correctIndex"))
        return cls(
            question=data["question"],
            options=list(data.get("options") or []),
            correct_index=correct_index,
            answer=data.get("answer"),
        )


@dataclass
class StudySession:
    """学習セッションログ（追記専用）

    Attributes:
        topic: 学習したトピック（科目名）
        duration_minutes: 学習時間（分、常に > 0）
        date: 学習日時
        quiz_score: クイズスコア（0-100、任意）
        notes: メモ（任意）
    """

    topic: str
    duration_minutes: float
    date: datetime
    quiz_score: Optional[float] = None
    notes: Optional[str] = None

    def __post_init__(self):
        """バリデーション"""
        if self.duration_minutes <= 0:
            raise ValueError(
                f"duration_minutes must be > 0, got {self.duration_minutes}"
            )
        if self.quiz_score is not None and not (0 <= self.quiz_score <= 100):
            raise ValueError(
                f"quiz_score must be 0-100, got {self.quiz_score}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "duration_minutes": self.duration_minutes,
            "date": self.date.isoformat(),
            "quiz_score": self.quiz_score,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StudySession:
        return cls(
            topic=data["topic"],
            duration_minutes=data["duration_minutes"],
            date=_parse_datetime(data["date"]),
            quiz_score=data.get("quiz_score"),
            notes=data.get("notes"),
        )


@dataclass
class QuizResult:
    """クイズ結果ログ（追記専用）"""

    topic: str
    score: float
    date: datetime

    def __post_init__(self):
        if not (0 <= self.score <= 100):
            raise ValueError(f"score must be 0-100, got {self.score}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "score": self.score,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QuizResult:
        return cls(
            topic=data["topic"],
            score=data["score"],
            date=_parse_datetime(data["date"]),
        )


@dataclass
class Subject:
    """科目

    最初に参照したツール呼び出しで作成され、削除されない。

    Attributes:
        name: 科目名（ユーザー内で一意）
        topics: サブトピックのラベル（挿入順、重複なし）
        flashcards: 所有するカード（重複なし、挿入順）
        quiz_results: クイズ結果ログ
    """

    name: str
    topics: List[str] = field(default_factory=list)
    flashcards: List[Flashcard] = field(default_factory=list)
    quiz_results: List[QuizResult] = field(default_factory=list)

    def add_topics(self, topics: List[str]) -> None:
        """サブトピックを重複なしで追加"""
        for topic in topics:
            if topic not in self.topics:
                self.topics.append(topic)

    def add_flashcards(self, cards: List[Flashcard]) -> int:
        """カードを集合として追加

        Returns:
            新たに追加された枚数
        """
        added = 0
        for card in cards:
            if card not in self.flashcards:
                self.flashcards.append(card)
                added += 1
        return added

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "topics": list(self.topics),
            "flashcards": [c.to_dict() for c in self.flashcards],
            "quiz_results": [r.to_dict() for r in self.quiz_results],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Subject:
        return cls(
            name=data["name"],
            topics=list(data.get("topics", [])),
            flashcards=[Flashcard.from_dict(c) for c in data.get("flashcards", [])],
            quiz_results=[QuizResult.from_dict(r) for r in data.get("quiz_results", [])],
        )


@dataclass
class Deck:
    """名前付きデッキ"""

    name: str
    cards: List[Flashcard] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "cards": [c.to_dict() for c in self.cards],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Deck:
        return cls(
            name=data["name"],
            cards=[Flashcard.from_dict(c) for c in data.get("cards", [])],
        )


@dataclass
class UserState:
    """ユーザー1人分の学習状態

    Attributes:
        user_id: ユーザーID
        subjects: 科目名 -> Subject（挿入順を保持）
        sessions: 全科目のセッションログ（記録順）
    """

    user_id: str
    subjects: Dict[str, Subject] = field(default_factory=dict)
    sessions: List[StudySession] = field(default_factory=list)

    def ensure_subject(self, name: str) -> Subject:
        """科目を取得（存在しなければ作成）"""
        subject = self.subjects.get(name)
        if subject is None:
            subject = Subject(name=name)
            self.subjects[name] = subject
        return subject

    def all_flashcards(self) -> List[Flashcard]:
        """全科目のカードを科目の挿入順に連結して返す"""
        cards: List[Flashcard] = []
        for subject in self.subjects.values():
            cards.extend(subject.flashcards)
        return cards

    def log_session(self, session: StudySession) -> None:
        """セッションを記録（科目がなければ作成）"""
        self.ensure_subject(session.topic)
        self.sessions.append(session)

    def session_log(self) -> List[StudySession]:
        """セッションログを記録順のまま返す"""
        return list(self.sessions)

    def copy(self) -> UserState:
        """ストア内のスナップショットと共有しない作業用コピーを返す"""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "subjects": [s.to_dict() for s in self.subjects.values()],
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> UserState:
        subjects = [Subject.from_dict(s) for s in data.get("subjects", [])]
        return cls(
            user_id=data["user_id"],
            subjects={s.name: s for s in subjects},
            sessions=[StudySession.from_dict(s) for s in data.get("sessions", [])],
        )


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
