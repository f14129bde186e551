# 学習状態ストア
# ユーザー単位の科目・ログと、名前付きデッキの永続化インターフェース

"""
学習状態ストアモジュール

StudyService が読み書きする唯一の永続化窓口。

インターフェース:
    get(user_id)              -> UserState | None
    upsert(user_id, mutator)  -> mutator の戻り値（ユーザー単位で原子的な読み取り・変更・書き戻し）
    get_deck(deck_name)       -> Deck | None
    put_deck(deck_name, deck)
    list_deck_names()         -> デッキ名の一覧
    close()

設計方針:
- 原子性: 同一ユーザーへの upsert は直列化し、更新の消失を防ぐ
- 全か無か: mutator が例外を送出した場合は何も書き戻さない
- スナップショット: get で返す状態はストア内部と共有しない
- 差し替え容易性: インメモリ実装と PostgreSQL 実装を同じインターフェースで提供
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, TypeVar

from interleaved_learning.config.study_config import StudyConfig
from interleaved_learning.models.study import Deck, UserState

logger = logging.getLogger(__name__)

T = TypeVar("T")

# upsert に渡す変更関数の型
Mutator = Callable[[UserState], T]


class StudyStore(ABC):
    """学習状態ストアの抽象基底クラス"""

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserState]:
        """ユーザーの学習状態を取得（存在しなければ None）"""

    @abstractmethod
    def upsert(self, user_id: str, mutator: Mutator[T]) -> T:
        """ユーザーの学習状態を原子的に読み取り・変更・書き戻す

        状態が存在しなければ空の UserState を作成して mutator に渡す。

        Args:
            user_id: ユーザーID
            mutator: 作業用コピーを受け取り変更する関数

        Returns:
            mutator の戻り値
        """

    @abstractmethod
    def get_deck(self, deck_name: str) -> Optional[Deck]:
        """デッキを取得（存在しなければ None）"""

    @abstractmethod
    def put_deck(self, deck_name: str, deck: Deck) -> None:
        """デッキを保存（同名デッキは置き換え）"""

    @abstractmethod
    def list_deck_names(self) -> List[str]:
        """保存済みデッキ名の一覧を取得"""

    def close(self) -> None:
        """ストアを終了（保持するリソースを解放）"""

    def __enter__(self) -> "StudyStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class InMemoryStudyStore(StudyStore):
    """プロセス内メモリに保持するストア

    プロセス終了とともに内容は失われる。テスト用フェイクとしても使用する。

    ロック:
        - _locks_guard: ユーザー表・ユーザー別ロック表・デッキ表を保護
        - _user_locks[user_id]: ユーザー単位の upsert を直列化

    ユーザー別ロックは upsert したユーザーにのみ作成し、close() まで保持する。
    get() はロックを作成しないため、未登録ユーザーの参照で表は増えない。

    Attributes:
        _users: ユーザーID -> UserState
        _decks: デッキ名 -> Deck（挿入順を保持）
    """

    def __init__(self) -> None:
        self._users: Dict[str, UserState] = {}
        self._decks: Dict[str, Deck] = {}
        self._user_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

        logger.info("InMemoryStudyStore 初期化完了")

    @contextmanager
    def _user_lock(self, user_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._user_locks.setdefault(user_id, threading.Lock())
        with lock:
            yield

    def get(self, user_id: str) -> Optional[UserState]:
        # 保存済みの UserState は置き換えのみで、その場では変更されない
        with self._locks_guard:
            state = self._users.get(user_id)
        return state.copy() if state is not None else None

    def upsert(self, user_id: str, mutator: Mutator[T]) -> T:
        with self._user_lock(user_id):
            current = self._users.get(user_id)
            working = current.copy() if current is not None else UserState(user_id=user_id)
            result = mutator(working)
            # mutator が正常終了した場合のみ書き戻す
            with self._locks_guard:
                self._users[user_id] = working
            return result

    def get_deck(self, deck_name: str) -> Optional[Deck]:
        with self._locks_guard:
            deck = self._decks.get(deck_name)
            return Deck(name=deck.name, cards=list(deck.cards)) if deck is not None else None

    def put_deck(self, deck_name: str, deck: Deck) -> None:
        with self._locks_guard:
            if deck_name in self._decks:
                logger.warning(f"デッキ '{deck_name}' を上書き保存します")
            self._decks[deck_name] = Deck(name=deck.name, cards=list(deck.cards))

    def list_deck_names(self) -> List[str]:
        with self._locks_guard:
            return list(self._decks.keys())

    def close(self) -> None:
        with self._locks_guard:
            self._users.clear()
            self._decks.clear()
            self._user_locks.clear()
        logger.info("InMemoryStudyStore をクローズしました")


def create_study_store(config: Optional[StudyConfig] = None) -> StudyStore:
    """設定に応じたストアを生成

    Args:
        config: StudyConfig インスタンス（省略時はデフォルト設定を使用）

    Returns:
        StudyStore: store_backend が "postgres" なら PostgresStudyStore、
                    それ以外は InMemoryStudyStore

    Raises:
        ValueError: 設定値が無効な場合
    """
    config = config or StudyConfig()
    config.validate()

    if config.store_backend == "postgres":
        from interleaved_learning.core.postgres_store import PostgresStudyStore
        from interleaved_learning.db.connection import DatabaseConnection

        store = PostgresStudyStore(DatabaseConnection(config.database_url))
        store.ensure_schema()
        return store

    return InMemoryStudyStore()
