# 乱数ソース
# パターン生成・クイズ・カード抽選が共通で使う抽選/シャッフルの基本操作

"""
乱数ソースモジュール

すべての抽選・シャッフルはこのクラス経由で行う。デフォルトはシードなし
（呼び出しごとに再現性なし）で、テストではシード付きインスタンスを注入して
出力列を固定する。
"""

import random
from typing import List, Optional, Sequence, TypeVar, Union

T = TypeVar("T")


class RandomSource:
    """一様乱数による抽選・シャッフル

    使用例:
        rng = RandomSource()          # シードなし
        rng = RandomSource(seed=42)   # テスト用に再現可能

        rng.choice(["A", "B", "C"])
        rng.shuffled([1, 2, 3])       # 新しいリストを返す（入力は変更しない）

    Attributes:
        _random: 内部の random.Random インスタンス
    """

    def __init__(self, seed: Optional[Union[int, random.Random]] = None):
        """RandomSource を初期化

        Args:
            seed: シード値、または既存の random.Random（省略時はシードなし）
        """
        if isinstance(seed, random.Random):
            self._random = seed
        else:
            self._random = random.Random(seed)

    def choice(self, items: Sequence[T]) -> T:
        """items から1つを一様に選ぶ（復元抽出）

        Raises:
            IndexError: items が空の場合
        """
        return self._random.choice(items)

    def shuffled(self, items: Sequence[T]) -> List[T]:
        """items を一様にシャッフルした新しいリストを返す"""
        result = list(items)
        self._random.shuffle(result)
        return result

    def sample(self, items: Sequence[T], k: int) -> List[T]:
        """items から k 個を非復元抽出する（k は len(items) で頭打ち）"""
        return self._random.sample(list(items), min(k, len(items)))

    def randrange(self, stop: int) -> int:
        """[0, stop) の整数を一様に選ぶ"""
        return self._random.randrange(stop)
