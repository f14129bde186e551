# PatternEngine テスト
# 各インターリーブパターンが指定長の系列を正しい順序で生成することを確認

"""
PatternEngine のユニットテスト

テスト観点:
- 全パターンで系列長がちょうど total_items、要素は入力トピックのみ
- 正規パターン（random / systematic_short / systematic_extended / front_loaded / spaced）の順序
- 旧ツール互換パターン（ABAB / ABCABC / ABACBC / Random / Blocked-to-Interleaved）
- 未知のパターン・空トピック・負の長さの扱い
"""

import logging
from collections import Counter

import pytest

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.interleaving.pattern_catalog import InterleavingPattern
from interleaved_learning.interleaving.pattern_engine import PatternEngine

TOPICS = ["A", "B", "C"]


@pytest.fixture
def engine():
    return PatternEngine(RandomSource(seed=1234))


# =============================================================================
# 共通の性質
# =============================================================================


class TestSequenceLength:
    """系列長と要素の検証"""

    @pytest.mark.parametrize("pattern", list(InterleavingPattern))
    @pytest.mark.parametrize("total", [0, 1, 2, 5, 7, 12, 30])
    def test_exact_length_and_members(self, engine, pattern, total):
        """全パターンで長さ total、要素はすべて入力トピック"""
        sequence = engine.generate(TOPICS, pattern, total)

        assert len(sequence) == total
        assert set(sequence) <= set(TOPICS)

    @pytest.mark.parametrize("pattern", list(InterleavingPattern))
    def test_single_topic(self, engine, pattern):
        """トピックが1つなら全要素がそのトピック"""
        assert engine.generate(["Solo"], pattern, 5) == ["Solo"] * 5

    def test_accepts_string_identifier(self, engine):
        assert engine.generate(TOPICS, "systematic_short", 3) == ["A", "B", "C"]


# =============================================================================
# 正規パターン
# =============================================================================


class TestCanonicalPatterns:
    """正規パターンの順序テスト"""

    def test_systematic_short_rotates(self, engine):
        """ABCABC の巡回"""
        assert engine.generate(TOPICS, InterleavingPattern.SYSTEMATIC_SHORT, 7) == list("ABCABCA")

    def test_systematic_extended_blocks_of_two(self, engine):
        """各トピックを2回ずつ連続させて巡回（AABBCC）"""
        assert engine.generate(TOPICS, InterleavingPattern.SYSTEMATIC_EXTENDED, 8) == list("AABBCCAA")

    def test_systematic_extended_stops_mid_block(self, engine):
        assert engine.generate(TOPICS, InterleavingPattern.SYSTEMATIC_EXTENDED, 3) == list("AAB")

    def test_systematic_extended_uses_configured_block_size(self):
        engine = PatternEngine(RandomSource(seed=1), StudyConfig(extended_block_size=3))
        assert engine.generate(["A", "B"], InterleavingPattern.SYSTEMATIC_EXTENDED, 7) == list("AAABBBA")

    def test_front_loaded_thirty_items(self, engine):
        """70% までは3回連続の集中学習、残りはラウンドロビン"""
        sequence = engine.generate(TOPICS, InterleavingPattern.FRONT_LOADED, 30)

        assert sequence[:21] == list("AAABBBCCCAAABBBCCCAAA")
        assert sequence[21:] == list("ABCABCABC")

    def test_front_loaded_last_run_is_capped(self, engine):
        """集中学習の連続は total を超えない"""
        sequence = engine.generate(TOPICS, InterleavingPattern.FRONT_LOADED, 2)
        assert sequence == ["A", "A"]

    def test_random_is_reproducible_with_seed(self):
        a = PatternEngine(RandomSource(seed=5)).generate(TOPICS, InterleavingPattern.RANDOM, 20)
        b = PatternEngine(RandomSource(seed=5)).generate(TOPICS, InterleavingPattern.RANDOM, 20)
        assert a == b

    def test_spaced_weights_earlier_topics(self, engine):
        """先頭のトピックほど多く出現する（重み 3:2:1）"""
        counts = Counter(engine.generate(TOPICS, InterleavingPattern.SPACED, 3000))

        assert counts["A"] > counts["B"] > counts["C"] > 0


# =============================================================================
# 旧ツール互換パターン
# =============================================================================


class TestLegacyPatterns:
    """旧ツール互換パターンのテスト"""

    def test_alternation_uses_first_two_topics(self, engine):
        assert engine.generate(TOPICS, "ABAB", 5) == list("ABABA")

    def test_triple_rotation_uses_first_three_topics(self, engine):
        assert engine.generate(["A", "B", "C", "D"], "ABCABC", 7) == list("ABCABCA")

    def test_spaced_mixing_template(self, engine):
        """A B A C B C の繰り返し"""
        assert engine.generate(TOPICS, "ABACBC", 8) == list("ABACBCAB")

    def test_spaced_mixing_with_two_topics(self, engine):
        """3番目のトピックがなければ A B A B B A"""
        assert engine.generate(["A", "B"], "ABACBC", 6) == list("ABABBA")

    def test_shuffled_double_chunks(self, engine):
        """2倍リストのシャッフルを連結するため、各塊に各トピックが2回ずつ含まれる"""
        sequence = engine.generate(TOPICS, "Random", 12)

        assert sorted(sequence[:6]) == list("AABBCC")
        assert sorted(sequence[6:]) == list("AABBCC")

    def test_blocked_to_interleaved(self, engine):
        """指定順の1巡の後にシャッフルした1巡"""
        sequence = engine.generate(TOPICS, "Blocked-to-Interleaved", 12)

        assert sequence[:3] == TOPICS
        assert sorted(sequence[3:6]) == TOPICS
        assert sequence[6:9] == TOPICS

    def test_lowercase_random_differs_from_legacy_random(self):
        """"random" と "Random" は別のパターン"""
        assert InterleavingPattern.parse("random") is InterleavingPattern.RANDOM
        assert InterleavingPattern.parse("Random") is InterleavingPattern.SHUFFLED_DOUBLE


# =============================================================================
# 異常系
# =============================================================================


class TestEdgeCases:
    """未知のパターン・空入力のテスト"""

    def test_unknown_pattern_falls_back(self, engine, caplog):
        """未知のパターンは systematic_short として扱い警告する"""
        with caplog.at_level(logging.WARNING):
            sequence = engine.generate(TOPICS, "zigzag", 4)

        assert sequence == list("ABCA")
        assert "zigzag" in caplog.text

    def test_resolve_pattern(self, engine):
        assert engine.resolve_pattern("front_loaded") is InterleavingPattern.FRONT_LOADED
        assert engine.resolve_pattern(None) is InterleavingPattern.SYSTEMATIC_SHORT

    def test_empty_topics_returns_empty(self, engine):
        assert engine.generate([], InterleavingPattern.RANDOM, 5) == []

    def test_negative_total_raises(self, engine):
        with pytest.raises(ValueError):
            engine.generate(TOPICS, InterleavingPattern.RANDOM, -1)

    def test_systematic_extended_zero_block_size_terminates(self):
        """ブロック長 0 は 1 として扱い、無限ループしない"""
        engine = PatternEngine(RandomSource(seed=1), StudyConfig(extended_block_size=0))
        assert engine.generate(["A", "B"], InterleavingPattern.SYSTEMATIC_EXTENDED, 5) == list("ABABA")

    def test_front_loaded_zero_deep_study_size_terminates(self):
        """深掘り回数 0 は 1 として扱い、無限ループしない"""
        engine = PatternEngine(RandomSource(seed=1), StudyConfig(deep_study_size=0))
        assert engine.generate(["A", "B"], InterleavingPattern.FRONT_LOADED, 5) == list("ABABA")

    def test_front_loaded_ratio_above_one_is_capped(self):
        """比率が 1 を超えても系列長は total_items に収まる"""
        engine = PatternEngine(RandomSource(seed=1), StudyConfig(front_loaded_ratio=1.5))
        assert engine.generate(["A", "B"], InterleavingPattern.FRONT_LOADED, 5) == list("AAABB")
