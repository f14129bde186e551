# 学習スケジュール構築
# パターンエンジンが生成したトピック系列を、時間割付きのスケジュールに変換する

"""
スケジュール構築モジュール

処理内容:
    1. ブロック時間 = floor(total_minutes / ブロック数)
    2. 各ブロックに学習活動ラベルを i mod 3 でローテーション
       ("learn new concepts" / "practice problems" / "review & self-test")
    3. 各ブロックに科目のサブトピックを科目ごとに巡回して割り当て
    4. 休憩有効時は break_every_blocks ブロックごとに休憩を挿入（最終ブロックの後は除く）
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from interleaved_learning.config.study_config import StudyConfig


@dataclass
class ScheduleEntry:
    """スケジュールの1エントリ（学習ブロックまたは休憩）

    Attributes:
        entry_type: "study" | "break"
        duration_minutes: 所要時間（分）
        order: 学習ブロックの通し番号（1始まり、休憩は None）
        subject: 学習する科目（休憩は None）
        focus_topic: 科目内で重点を置くサブトピック（未登録なら None）
        activity: 学習活動ラベル（休憩は None）
    """

    entry_type: str
    duration_minutes: int
    order: Optional[int] = None
    subject: Optional[str] = None
    focus_topic: Optional[str] = None
    activity: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.entry_type == "break":
            return {"type": "break", "duration_minutes": self.duration_minutes}
        return {
            "type": "study",
            "order": self.order,
            "subject": self.subject,
            "focus_topic": self.focus_topic,
            "activity": self.activity,
            "duration_minutes": self.duration_minutes,
        }


@dataclass
class StudySchedule:
    """時間割付きスケジュール"""

    block_minutes: int
    entries: List[ScheduleEntry] = field(default_factory=list)

    @property
    def study_blocks(self) -> List[ScheduleEntry]:
        return [e for e in self.entries if e.entry_type == "study"]

    @property
    def total_study_minutes(self) -> int:
        return sum(e.duration_minutes for e in self.study_blocks)

    @property
    def total_break_minutes(self) -> int:
        return sum(e.duration_minutes for e in self.entries if e.entry_type == "break")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "block_minutes": self.block_minutes,
            "block_count": len(self.study_blocks),
            "total_study_minutes": self.total_study_minutes,
            "total_break_minutes": self.total_break_minutes,
            "entries": [e.to_dict() for e in self.entries],
        }


class ScheduleBuilder:
    """トピック系列を時間割に変換する

    使用例:
        builder = ScheduleBuilder()
        schedule = builder.build(["Math", "Bio", "Math", "Bio"], total_minutes=60)
        schedule.block_minutes  # 15

    Attributes:
        config: StudyConfig インスタンス
    """

    def __init__(self, config: Optional[StudyConfig] = None):
        self.config = config or StudyConfig()

    def build(
        self,
        sequence: Sequence[str],
        total_minutes: int,
        breaks_enabled: bool = True,
        subject_topics: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> StudySchedule:
        """スケジュールを構築

        Args:
            sequence: パターンエンジンが生成した科目ラベルの系列
            total_minutes: 学習に割り当てる合計時間（分）
            breaks_enabled: 休憩を挿入するか
            subject_topics: 科目名 -> サブトピックのリスト（省略可）

        Returns:
            StudySchedule
        """
        block_count = len(sequence)
        if block_count == 0:
            return StudySchedule(block_minutes=0)

        block_minutes = total_minutes // block_count
        labels = self.config.activity_labels
        subject_topics = subject_topics or {}
        focus_counters: Dict[str, int] = {}

        entries: List[ScheduleEntry] = []
        for i, subject in enumerate(sequence):
            entries.append(
                ScheduleEntry(
                    entry_type="study",
                    duration_minutes=block_minutes,
                    order=i + 1,
                    subject=subject,
                    focus_topic=self._next_focus_topic(subject, subject_topics, focus_counters),
                    activity=labels[i % len(labels)],
                )
            )

            is_last = i == block_count - 1
            if breaks_enabled and not is_last and (i + 1) % self.config.break_every_blocks == 0:
                entries.append(
                    ScheduleEntry(entry_type="break", duration_minutes=self.config.break_minutes)
                )

        return StudySchedule(block_minutes=block_minutes, entries=entries)

    def _next_focus_topic(
        self,
        subject: str,
        subject_topics: Mapping[str, Sequence[str]],
        counters: Dict[str, int],
    ) -> Optional[str]:
        topics = subject_topics.get(subject) or []
        if not topics:
            return None
        index = counters.get(subject, 0)
        counters[subject] = index + 1
        return topics[index % len(topics)]
