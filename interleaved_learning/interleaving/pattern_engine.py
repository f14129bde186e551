# インターリーブ系列生成エンジン
# トピックのリストと名前付きパターンから、指定長のトピック系列を生成する

"""
パターンエンジンモジュール

generate(topics, pattern, total_items) は常にちょうど total_items 個の
トピックラベルを返す（トピックは復元抽出、繰り返しあり）。

正規パターン:
    random              : 各位置を topics から独立に一様抽選
    systematic_short    : 位置 i = topics[i mod n]（ABCABC）
    systematic_extended : 各トピックを block_size 回ずつ連続させて巡回（AABBCC）
    front_loaded        : deep_study_size 回の連続を総数の 70% に達するまで続け、
                          残りをラウンドロビンで埋める
    spaced              : インデックス idx のトピックを n - idx 回含む重み付きプールから抽選

旧ツール互換パターン:
    ABAB                   : 先頭2トピックの交互
    ABCABC                 : 先頭3トピックの巡回
    ABACBC                 : 固定テンプレート A B A C B C の繰り返し
    Random                 : 2倍リストをシャッフルした塊を連結
    Blocked-to-Interleaved : 指定順の1巡 + シャッフルした1巡の繰り返し

未知のパターン識別子は systematic_short として扱う（エラーにしない）。
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.interleaving.pattern_catalog import (
    DEFAULT_PATTERN,
    InterleavingPattern,
)

logger = logging.getLogger(__name__)


class PatternEngine:
    """インターリーブ系列生成エンジン

    使用例:
        engine = PatternEngine(RandomSource(seed=1))
        engine.generate(["A", "B", "C"], "systematic_short", 6)
        # ['A', 'B', 'C', 'A', 'B', 'C']

    Attributes:
        random_source: 抽選に使用する RandomSource
        config: StudyConfig インスタンス
    """

    def __init__(
        self,
        random_source: Optional[RandomSource] = None,
        config: Optional[StudyConfig] = None,
    ):
        self.random_source = random_source or RandomSource()
        self.config = config or StudyConfig()
        self._generators: Dict[InterleavingPattern, Callable[[List[str], int], List[str]]] = {
            InterleavingPattern.RANDOM: self._random,
            InterleavingPattern.SYSTEMATIC_SHORT: self._systematic_short,
            InterleavingPattern.SYSTEMATIC_EXTENDED: self._systematic_extended,
            InterleavingPattern.FRONT_LOADED: self._front_loaded,
            InterleavingPattern.SPACED: self._spaced,
            InterleavingPattern.ALTERNATION: self._alternation,
            InterleavingPattern.TRIPLE_ROTATION: self._triple_rotation,
            InterleavingPattern.SPACED_MIXING: self._spaced_mixing,
            InterleavingPattern.SHUFFLED_DOUBLE: self._shuffled_double,
            InterleavingPattern.BLOCKED_TO_INTERLEAVED: self._blocked_to_interleaved,
        }

    def resolve_pattern(self, pattern: Any) -> InterleavingPattern:
        """パターン識別子を解決（未知の識別子はデフォルトにフォールバック）"""
        resolved = InterleavingPattern.parse(pattern)
        if resolved is None:
            logger.warning(
                f"未知のパターン '{pattern}' のため {DEFAULT_PATTERN.value} を使用します"
            )
            return DEFAULT_PATTERN
        return resolved

    def generate(
        self,
        topics: Sequence[str],
        pattern: Any,
        total_items: int,
    ) -> List[str]:
        """トピック系列を生成

        Args:
            topics: トピックラベル（空でない順序付きリスト）
            pattern: パターン識別子（InterleavingPattern または文字列）
            total_items: 生成する系列長（0以上）

        Returns:
            長さ total_items のトピックラベルのリスト。
            topics が空の場合は空リスト。

        Raises:
            ValueError: total_items が負の場合
        """
        if total_items < 0:
            raise ValueError(f"total_items must be >= 0, got {total_items}")

        topic_list = list(topics)
        if not topic_list:
            logger.warning("トピックが空のため空の系列を返します")
            return []

        resolved = self.resolve_pattern(pattern)
        sequence = self._generators[resolved](topic_list, total_items)

        logger.debug(
            f"系列生成: pattern={resolved.value}, topics={len(topic_list)}, items={len(sequence)}"
        )
        return sequence

    # === 正規パターン ===

    def _random(self, topics: List[str], total: int) -> List[str]:
        return [self.random_source.choice(topics) for _ in range(total)]

    def _systematic_short(self, topics: List[str], total: int) -> List[str]:
        return _rotate(topics, total)

    def _systematic_extended(self, topics: List[str], total: int) -> List[str]:
        # 0 以下のブロック長では系列が伸びないため 1 に切り上げる
        block_size = max(1, self.config.extended_block_size)
        sequence: List[str] = []
        while len(sequence) < total:
            for topic in topics:
                for _ in range(block_size):
                    if len(sequence) == total:
                        return sequence
                    sequence.append(topic)
        return sequence

    def _front_loaded(self, topics: List[str], total: int) -> List[str]:
        deep_size = max(1, self.config.deep_study_size)
        deep_target = min(total * self.config.front_loaded_ratio, total)

        sequence: List[str] = []
        run = 0
        while len(sequence) < deep_target:
            topic = topics[run % len(topics)]
            repeats = min(deep_size, total - len(sequence))
            sequence.extend([topic] * repeats)
            run += 1

        sequence.extend(_rotate(topics, total - len(sequence)))
        return sequence

    def _spaced(self, topics: List[str], total: int) -> List[str]:
        n = len(topics)
        weighted_pool = [
            topic for idx, topic in enumerate(topics) for _ in range(n - idx)
        ]
        return [self.random_source.choice(weighted_pool) for _ in range(total)]

    # === 旧ツール互換パターン ===

    def _alternation(self, topics: List[str], total: int) -> List[str]:
        return _rotate(topics[:2], total)

    def _triple_rotation(self, topics: List[str], total: int) -> List[str]:
        return _rotate(topics[:3], total)

    def _spaced_mixing(self, topics: List[str], total: int) -> List[str]:
        a = topics[0]
        b = topics[1] if len(topics) > 1 else a
        c = topics[2] if len(topics) > 2 else None
        template = [a, b, a, c or b, b, c or a]
        return _rotate(template, total)

    def _shuffled_double(self, topics: List[str], total: int) -> List[str]:
        sequence: List[str] = []
        while len(sequence) < total:
            sequence.extend(self.random_source.shuffled(topics + topics))
        return sequence[:total]

    def _blocked_to_interleaved(self, topics: List[str], total: int) -> List[str]:
        sequence: List[str] = []
        while len(sequence) < total:
            sequence.extend(topics)
            sequence.extend(self.random_source.shuffled(topics))
        return sequence[:total]


def _rotate(items: Sequence[str], total: int) -> List[str]:
    """items を先頭から巡回して total 個並べる"""
    if not items:
        return []
    return [items[i % len(items)] for i in range(total)]
