# 学習進捗の集計
# セッションログをトピック別の統計に畳み込み、推薦メッセージを導出する

"""
進捗集計モジュール

トピック別統計:
    total_minutes  : 学習時間の合計
    session_count  : セッション数
    average_score  : 記録されたクイズスコアの平均（記録なしは None）
    last_studied   : 最終学習日時（未学習は None）

推薦ルール（該当するものをすべて、この順で出力）:
    1. 累計時間が最小のトピック（安定ソートで先頭）が 60 分未満なら時間不足
    2. 平均スコアが 70 未満のトピックをそれぞれ復習対象に
    3. トピックが2つ以上あればインターリーブ継続の励まし
    4. フラッシュカードが0枚のトピックを指摘
    5. 最終学習から3日を超えたトピックを間隔復習対象に（経過日数を含める）
       未学習のトピック（last_studied が None）は対象外
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.models.study import StudySession


@dataclass
class TopicStats:
    """トピック別の学習統計"""

    topic: str
    total_minutes: float = 0
    session_count: int = 0
    average_score: Optional[float] = None
    last_studied: Optional[datetime] = None
    flashcard_count: Optional[int] = None
    _scores: List[float] = field(default_factory=list, repr=False)

    def add_session(self, session: StudySession) -> None:
        self.total_minutes += session.duration_minutes
        self.session_count += 1
        if session.quiz_score is not None:
            self._scores.append(session.quiz_score)
            self.average_score = sum(self._scores) / len(self._scores)
        if self.last_studied is None or session.date > self.last_studied:
            self.last_studied = session.date

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "total_minutes": self.total_minutes,
            "session_count": self.session_count,
            "average_score": self.average_score,
            "last_studied": self.last_studied.isoformat() if self.last_studied else None,
        }
        if self.flashcard_count is not None:
            data["flashcard_count"] = self.flashcard_count
        return data


@dataclass
class ProgressReport:
    """集計結果"""

    stats: Dict[str, TopicStats] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)

    @property
    def total_sessions(self) -> int:
        return sum(s.session_count for s in self.stats.values())

    @property
    def total_minutes(self) -> float:
        return sum(s.total_minutes for s in self.stats.values())

    def to_dict(self, include_recommendations: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "total_sessions": self.total_sessions,
            "total_minutes": self.total_minutes,
            "topic_breakdown": {name: s.to_dict() for name, s in self.stats.items()},
        }
        if include_recommendations:
            data["recommendations"] = list(self.recommendations)
        return data


class ProgressAggregator:
    """学習進捗の集計と推薦

    使用例:
        aggregator = ProgressAggregator()
        report = aggregator.aggregate(sessions, flashcard_counts={"Math": 4})
        report.stats["Math"].total_minutes
        report.recommendations

    Attributes:
        config: StudyConfig インスタンス（推薦ルールの閾値）
    """

    def __init__(self, config: Optional[StudyConfig] = None):
        self.config = config or StudyConfig()

    def aggregate(
        self,
        sessions: Sequence[StudySession],
        flashcard_counts: Optional[Mapping[str, int]] = None,
        known_topics: Iterable[str] = (),
        current_time: Optional[datetime] = None,
    ) -> ProgressReport:
        """セッションログを集計

        Args:
            sessions: 記録順のセッションログ
            flashcard_counts: トピック -> カード枚数（省略時はルール4を評価しない）
            known_topics: セッションがなくても統計に含めるトピック
            current_time: 現在時刻（テスト用、省略時はdatetime.now()）

        Returns:
            ProgressReport: トピック別統計（初出順）と推薦メッセージ
        """
        if current_time is None:
            current_time = datetime.now()

        stats: Dict[str, TopicStats] = {}
        for session in sessions:
            stats.setdefault(session.topic, TopicStats(topic=session.topic)).add_session(session)
        for topic in known_topics:
            stats.setdefault(topic, TopicStats(topic=topic))

        if flashcard_counts is not None:
            for topic, topic_stats in stats.items():
                topic_stats.flashcard_count = flashcard_counts.get(topic, 0)

        report = ProgressReport(stats=stats)
        report.recommendations = self.recommend(list(stats.values()), current_time)
        return report

    def recommend(self, stats: List[TopicStats], current_time: datetime) -> List[str]:
        """推薦ルールを順に評価

        Args:
            stats: トピック別統計（初出順）
            current_time: 現在時刻

        Returns:
            推薦メッセージのリスト
        """
        recommendations: List[str] = []
        if not stats:
            return recommendations

        # 1. 最も学習時間が少ないトピック（sorted は安定ソート）
        least_studied = sorted(stats, key=lambda s: s.total_minutes)[0]
        threshold = self.config.least_studied_threshold_minutes
        if least_studied.total_minutes < threshold:
            recommendations.append(
                f"Spend more time on {least_studied.topic}: only "
                f"{_format_number(least_studied.total_minutes)} minutes studied so far "
                f"(aim for at least {threshold})."
            )

        # 2. 平均スコアが低いトピック
        for topic_stats in stats:
            score = topic_stats.average_score
            if score is not None and score < self.config.low_score_threshold:
                recommendations.append(
                    f"Review {topic_stats.topic}: average quiz score is "
                    f"{_format_number(score)}%, below {_format_number(self.config.low_score_threshold)}%."
                )

        # 3. インターリーブ継続
        if len(stats) >= 2:
            recommendations.append(
                f"Keep interleaving your {len(stats)} topics to strengthen "
                "discrimination between concepts."
            )

        # 4. フラッシュカードなし
        for topic_stats in stats:
            if topic_stats.flashcard_count == 0:
                recommendations.append(
                    f"Create flashcards for {topic_stats.topic} to practise active recall."
                )

        # 5. 間隔復習（未学習は対象外）
        review_after = timedelta(days=self.config.spaced_review_days)
        for topic_stats in stats:
            if topic_stats.last_studied is None:
                continue
            elapsed = current_time - topic_stats.last_studied
            if elapsed > review_after:
                recommendations.append(
                    f"Time for a spaced review of {topic_stats.topic}: "
                    f"last studied {elapsed.days} days ago."
                )

        return recommendations


def _format_number(value: float) -> str:
    """整数値は小数点なし、それ以外は小数1桁で表示"""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"
