# ScheduleBuilder テスト

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.interleaving.schedule_builder import ScheduleBuilder


def _types(schedule):
    return [entry.entry_type for entry in schedule.entries]


class TestScheduleTiming:
    """ブロック時間と休憩の挿入"""

    def test_block_minutes_is_floor(self):
        """ブロック時間 = floor(合計 / ブロック数)"""
        schedule = ScheduleBuilder().build(["A", "B", "C"], 100, breaks_enabled=False)

        assert schedule.block_minutes == 33
        assert all(b.duration_minutes == 33 for b in schedule.study_blocks)
        assert schedule.total_study_minutes == 99

    def test_no_break_after_final_block(self):
        """4ブロックちょうどなら最後の後に休憩は入らない"""
        schedule = ScheduleBuilder().build(["A", "B", "A", "B"], 60)

        assert _types(schedule) == ["study"] * 4

    def test_break_every_four_blocks(self):
        """4ブロックごとに5分の休憩"""
        schedule = ScheduleBuilder().build(list("ABCABCABC"), 90)

        assert _types(schedule) == (
            ["study"] * 4 + ["break"] + ["study"] * 4 + ["break"] + ["study"]
        )
        assert schedule.total_break_minutes == 10

    def test_breaks_disabled(self):
        schedule = ScheduleBuilder().build(list("ABABABAB"), 80, breaks_enabled=False)
        assert "break" not in _types(schedule)

    def test_custom_break_settings(self):
        config = StudyConfig(break_every_blocks=2, break_minutes=3)
        schedule = ScheduleBuilder(config).build(list("ABAB"), 40)

        assert _types(schedule) == ["study", "study", "break", "study", "study"]
        assert schedule.total_break_minutes == 3

    def test_empty_sequence(self):
        schedule = ScheduleBuilder().build([], 60)
        assert schedule.block_minutes == 0
        assert schedule.entries == []


class TestScheduleLabels:
    """活動ラベルとサブトピックの割り当て"""

    def test_activity_rotates_mod_three(self):
        schedule = ScheduleBuilder().build(list("ABCAB"), 50, breaks_enabled=False)

        assert [b.activity for b in schedule.study_blocks] == [
            "learn new concepts",
            "practice problems",
            "review & self-test",
            "learn new concepts",
            "practice problems",
        ]

    def test_order_numbers_skip_breaks(self):
        schedule = ScheduleBuilder().build(list("ABABAB"), 60)
        assert [b.order for b in schedule.study_blocks] == [1, 2, 3, 4, 5, 6]

    def test_focus_topic_rotates_per_subject(self):
        """科目ごとにサブトピックを巡回"""
        schedule = ScheduleBuilder().build(
            ["Math", "Bio", "Math", "Bio", "Math"],
            50,
            breaks_enabled=False,
            subject_topics={"Math": ["algebra", "geometry"], "Bio": []},
        )

        assert [b.focus_topic for b in schedule.study_blocks] == [
            "algebra", None, "geometry", None, "algebra",
        ]

    def test_to_dict(self):
        schedule = ScheduleBuilder().build(list("ABABA"), 50)
        data = schedule.to_dict()

        assert data["block_minutes"] == 10
        assert data["block_count"] == 5
        assert data["total_study_minutes"] == 50
        assert data["total_break_minutes"] == 5
        assert data["entries"][0] == {
            "type": "study",
            "order": 1,
            "subject": "A",
            "focus_topic": None,
            "activity": "learn new concepts",
            "duration_minutes": 10,
        }
        assert data["entries"][4] == {"type": "break", "duration_minutes": 5}
