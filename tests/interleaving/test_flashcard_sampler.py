# FlashcardSampler テスト

"""
FlashcardSampler のユニットテスト

テスト観点:
- 返す枚数は min(count, プール枚数)、同じカードを2度返さない
- random / systematic / balanced 各方針の順序
- balanced のラウンドロビンで少数トピックが後回しにされない
- 空プールは明示的な失敗
"""

import pytest

from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.interleaving.flashcard_sampler import (
    NO_CARDS_ERROR,
    FlashcardSampler,
    SamplingPolicy,
)
from interleaved_learning.models.study import Flashcard


def _cards(topic, count):
    return [Flashcard(front=f"{topic} front {i}", back=f"{topic} back {i}", topic=topic) for i in range(count)]


@pytest.fixture
def pool():
    return _cards("Math", 4) + _cards("Biology", 3) + _cards("Chemistry", 2)


class TestCommonProperties:
    """全方針に共通する性質"""

    @pytest.mark.parametrize("policy", list(SamplingPolicy))
    @pytest.mark.parametrize("count", [None, 1, 5, 9, 50])
    def test_count_and_no_duplicates(self, pool, policy, count):
        result = FlashcardSampler(RandomSource(seed=11)).sample(pool, count, policy)

        expected = len(pool) if count is None else min(count, len(pool))
        assert result.success
        assert len(result.cards) == expected
        assert len(set(result.cards)) == expected
        assert set(result.cards) <= set(pool)

    def test_empty_pool_is_failure(self):
        """空プールは空の成功ではなく失敗"""
        result = FlashcardSampler().sample([], 5, "balanced")

        assert not result.success
        assert result.error == NO_CARDS_ERROR
        assert result.to_dict() == {"success": False, "error": NO_CARDS_ERROR}

    def test_unknown_policy_raises(self, pool):
        with pytest.raises(ValueError):
            FlashcardSampler().sample(pool, 3, "spiral")


class TestPolicies:
    """方針ごとの順序"""

    def test_systematic_groups_by_topic_name(self, pool):
        """トピック名の辞書順で連続する"""
        result = FlashcardSampler().sample(pool, policy=SamplingPolicy.SYSTEMATIC)

        assert [c.topic for c in result.cards] == ["Biology"] * 3 + ["Chemistry"] * 2 + ["Math"] * 4

    def test_systematic_truncates(self, pool):
        result = FlashcardSampler().sample(pool, 4, "systematic")
        assert [c.topic for c in result.cards] == ["Biology"] * 3 + ["Chemistry"]

    def test_random_is_reproducible(self, pool):
        a = FlashcardSampler(RandomSource(seed=3)).sample(pool, 5, "random")
        b = FlashcardSampler(RandomSource(seed=3)).sample(pool, 5, "random")
        assert a.cards == b.cards

    def test_balanced_round_robin(self, pool):
        """各巡で各トピックから1枚ずつ（初出順）"""
        result = FlashcardSampler(RandomSource(seed=5)).sample(pool, policy="balanced")

        assert [c.topic for c in result.cards] == [
            "Math", "Biology", "Chemistry",
            "Math", "Biology", "Chemistry",
            "Math", "Biology",
            "Math",
        ]

    @pytest.mark.parametrize("seed", range(10))
    def test_balanced_does_not_starve_small_topic(self, seed):
        """A:3枚, B:1枚, count=4 なら全4枚を返し、B は2番目までに出る"""
        pool = _cards("A", 3) + _cards("B", 1)
        result = FlashcardSampler(RandomSource(seed=seed)).sample(pool, 4, "balanced")

        topics = [c.topic for c in result.cards]
        assert sorted(result.cards, key=lambda c: c.front) == sorted(pool, key=lambda c: c.front)
        assert topics.index("B") <= 1
        assert topics == ["A", "B", "A", "A"]

    def test_balanced_after_group_exhausted(self):
        """尽きたグループを飛ばして残りで巡回を続ける"""
        pool = _cards("A", 1) + _cards("B", 3) + _cards("C", 2)
        result = FlashcardSampler(RandomSource(seed=2)).sample(pool, policy="balanced")

        assert [c.topic for c in result.cards] == ["A", "B", "C", "B", "C", "B"]


class TestSampleResult:
    def test_to_dict_numbers_cards(self, pool):
        data = FlashcardSampler().sample(pool, 2, "systematic").to_dict()

        assert data["success"] is True
        assert [c["number"] for c in data["cards"]] == [1, 2]
        assert data["cards"][0]["topic"] == "Biology"
