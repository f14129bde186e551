# インターリーブ学習ツールのパラメータ設定
# パターン生成・スケジュール・推薦ルール・永続化先をまとめて管理

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class StudyConfig:
    """インターリーブ学習ツールのパラメータ設定

    環境変数:
        STUDY_STORE_BACKEND: 永続化バックエンド（"memory" | "postgres"）
        DATABASE_URL: PostgreSQL 接続文字列（postgres バックエンド時に使用）

    使用例:
        config = StudyConfig()  # 環境変数から自動取得
        config = StudyConfig(store_backend="postgres", database_url="postgresql://...")
    """

    # === パターン生成 ===
    extended_block_size: int = 2
    """systematic_extended（AABBCC）で同じトピックを連続させる回数"""

    deep_study_size: int = 3
    """front_loaded の集中学習フェーズで同じトピックを連続させる回数"""

    front_loaded_ratio: float = 0.7
    """front_loaded で集中学習フェーズが占める割合"""

    # === スケジュール ===
    blocks_per_subject: int = 2
    """学習計画で1科目あたりに割り当てるブロック数"""

    break_every_blocks: int = 4
    """何ブロックごとに休憩を挟むか"""

    break_minutes: int = 5
    """休憩1回あたりの時間（分）"""

    activity_labels: List[str] = field(
        default_factory=lambda: [
            "learn new concepts",
            "practice problems",
            "review & self-test",
        ]
    )
    """ブロックごとに i mod 3 でローテーションする学習活動ラベル"""

    # === クイズ ===
    default_questions_per_topic: int = 3
    """questions_per_topic 未指定時の1トピックあたりの出題数"""

    # === 推薦ルール ===
    least_studied_threshold_minutes: int = 60
    """これ未満の累計学習時間のトピックを「時間不足」として推薦"""

    low_score_threshold: float = 70.0
    """平均スコアがこれ未満のトピックを復習対象として推薦"""

    spaced_review_days: int = 3
    """最終学習日からこの日数を超えたトピックを間隔復習対象として推薦"""

    # === ツール入力の制約 ===
    min_plan_subjects: int = 2
    """学習計画に必要な最小科目数"""

    min_plan_minutes: int = 30
    """学習計画の最小合計時間（分）"""

    max_questions_per_topic: int = 10
    """questions_per_topic の上限"""

    min_session_minutes: int = 1
    """学習セッション記録の最小時間（分）"""

    # === 永続化 ===
    store_backend: Optional[str] = None
    """永続化バックエンド: "memory" | "postgres"（未指定時は環境変数、なければ memory）"""

    database_url: Optional[str] = field(default=None, repr=False)
    """PostgreSQL 接続文字列（repr=False でログ出力時に非表示）"""

    def __post_init__(self) -> None:
        """初期化後の処理: 環境変数から設定を取得"""
        if self.store_backend is None:
            self.store_backend = os.getenv("STUDY_STORE_BACKEND") or "memory"

        if self.database_url is None:
            self.database_url = os.getenv("DATABASE_URL")

    def validate(self) -> None:
        """設定値を検証

        Raises:
            ValueError: 値が無効な場合
        """
        if self.extended_block_size <= 0:
            raise ValueError(
                f"extended_block_size は正の整数である必要があります: {self.extended_block_size}"
            )

        if self.deep_study_size <= 0:
            raise ValueError(
                f"deep_study_size は正の整数である必要があります: {self.deep_study_size}"
            )

        if not (0.0 <= self.front_loaded_ratio <= 1.0):
            raise ValueError(
                f"front_loaded_ratio は 0.0-1.0 の範囲である必要があります: {self.front_loaded_ratio}"
            )

        if self.blocks_per_subject <= 0:
            raise ValueError(
                f"blocks_per_subject は正の整数である必要があります: {self.blocks_per_subject}"
            )

        if self.break_every_blocks <= 0:
            raise ValueError(
                f"break_every_blocks は正の整数である必要があります: {self.break_every_blocks}"
            )

        if not self.activity_labels:
            raise ValueError("activity_labels は1つ以上必要です")

        if not (0.0 <= self.low_score_threshold <= 100.0):
            raise ValueError(
                f"low_score_threshold は 0-100 の範囲である必要があります: {self.low_score_threshold}"
            )

        if self.store_backend not in ("memory", "postgres"):
            raise ValueError(
                f"store_backend は memory/postgres のいずれかです: {self.store_backend}"
            )

        if self.store_backend == "postgres" and not self.database_url:
            raise ValueError(
                "postgres バックエンドには DATABASE_URL が必要です。"
                "DATABASE_URL 環境変数を設定するか、database_url 引数を指定してください。"
            )


# デフォルト設定のインスタンス
study_config = StudyConfig()
