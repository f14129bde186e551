# RandomSource のテスト

import random

import pytest

from interleaved_learning.core.random_source import RandomSource


class TestRandomSource:
    """RandomSource の単体テスト"""

    def test_same_seed_same_sequence(self):
        """同じシードなら同じ抽選結果"""
        a = RandomSource(seed=42)
        b = RandomSource(seed=42)
        items = ["A", "B", "C", "D"]

        assert [a.choice(items) for _ in range(20)] == [b.choice(items) for _ in range(20)]
        assert a.shuffled(items) == b.shuffled(items)

    def test_accepts_existing_random(self):
        """既存の random.Random を注入できる"""
        rng = random.Random(7)
        expected = random.Random(7).randrange(100)
        assert RandomSource(rng).randrange(100) == expected

    def test_shuffled_returns_new_list(self):
        """shuffled は入力を変更しない"""
        items = [1, 2, 3, 4, 5]
        result = RandomSource(seed=1).shuffled(items)

        assert items == [1, 2, 3, 4, 5]
        assert sorted(result) == items

    def test_shuffled_accepts_range(self):
        assert sorted(RandomSource(seed=1).shuffled(range(4))) == [0, 1, 2, 3]

    def test_sample_caps_at_population(self):
        """sample は母集団の大きさで頭打ち"""
        result = RandomSource(seed=3).sample(["A", "B"], 5)
        assert sorted(result) == ["A", "B"]

    def test_choice_on_empty_raises(self):
        with pytest.raises(IndexError):
            RandomSource().choice([])

    def test_randrange_bounds(self):
        rng = RandomSource(seed=9)
        assert all(0 <= rng.randrange(3) < 3 for _ in range(50))
