# フラッシュカード抽選
# トピック別に分かれたカードプールから、混合方針に従って指定枚数を引く

"""
フラッシュカード抽選モジュール

方針:
    random     : プール全体を一様にシャッフルして count 枚に切り詰める
    systematic : トピック名の辞書順で安定ソートして count 枚に切り詰める
                 （同じトピックが連続する。インターリーブではない）
    balanced   : トピックごとのグループを初出順にラウンドロビンし、各グループから
                 1枚ずつ一様に取り出す。count に達するか全グループが尽きたら終了

結果の枚数は min(count, プール枚数)。1回の呼び出しで同じカードを2度返さない。
プールが空の場合は空の成功ではなく、明示的な失敗（success=False）を返す。
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from interleaved_learning.core.random_source import RandomSource
from interleaved_learning.models.study import Flashcard

logger = logging.getLogger(__name__)

NO_CARDS_ERROR = "No flashcards found"


class SamplingPolicy(str, Enum):
    """カード混合方針"""

    RANDOM = "random"
    SYSTEMATIC = "systematic"
    BALANCED = "balanced"


@dataclass
class SampleResult:
    """抽選結果

    Attributes:
        success: 抽選できたかどうか（プールが空なら False）
        cards: 抽選されたカード（出題順）
        error: エラーメッセージ（失敗時）
    """

    success: bool
    cards: List[Flashcard] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.success:
            data["cards"] = [
                {"number": i, **card.to_dict()}
                for i, card in enumerate(self.cards, start=1)
            ]
        if self.error:
            data["error"] = self.error
        return data


class FlashcardSampler:
    """フラッシュカード抽選

    使用例:
        sampler = FlashcardSampler(RandomSource(seed=7))
        result = sampler.sample(cards, count=10, policy="balanced")
        if result.success:
            for card in result.cards: ...

    Attributes:
        random_source: 抽選に使用する RandomSource
    """

    def __init__(self, random_source: Optional[RandomSource] = None):
        self.random_source = random_source or RandomSource()

    def sample(
        self,
        pool: Sequence[Flashcard],
        count: Optional[int] = None,
        policy: Any = SamplingPolicy.RANDOM,
    ) -> SampleResult:
        """カードを抽選

        Args:
            pool: トピックで分類可能なカードのプール
            count: 抽選枚数（省略時はプール全体）
            policy: SamplingPolicy または "random" / "systematic" / "balanced"

        Returns:
            SampleResult

        Raises:
            ValueError: 未知の方針が指定された場合
        """
        if not pool:
            return SampleResult(success=False, error=NO_CARDS_ERROR)

        policy = SamplingPolicy(policy)
        limit = len(pool) if count is None else min(count, len(pool))

        if policy == SamplingPolicy.RANDOM:
            cards = self.random_source.shuffled(pool)[:limit]
        elif policy == SamplingPolicy.SYSTEMATIC:
            cards = sorted(pool, key=lambda card: card.topic)[:limit]
        else:
            cards = self._balanced(pool, limit)

        logger.debug(f"カード抽選: policy={policy.value}, pool={len(pool)}, drawn={len(cards)}")
        return SampleResult(success=True, cards=cards)

    def _balanced(self, pool: Sequence[Flashcard], limit: int) -> List[Flashcard]:
        groups: Dict[str, List[Flashcard]] = {}
        for card in pool:
            groups.setdefault(card.topic, []).append(card)
        rotation = list(groups.keys())

        drawn: List[Flashcard] = []
        position = 0
        while len(drawn) < limit and rotation:
            index = position % len(rotation)
            group = groups[rotation[index]]
            drawn.append(group.pop(self.random_source.randrange(len(group))))

            if group:
                position = index + 1
            else:
                # 尽きたグループを外すと次のトピックが同じ位置に詰まる
                rotation.pop(index)
                position = index
        return drawn
