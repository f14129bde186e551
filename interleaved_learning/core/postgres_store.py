# PostgreSQL 学習状態ストア
# ユーザー状態とデッキを JSONB として保存する StudyStore 実装

"""
PostgreSQL 学習状態ストアモジュール

テーブル:
    study_user_state(user_id TEXT PRIMARY KEY, state JSONB, updated_at TIMESTAMP)
    study_deck(deck_name TEXT PRIMARY KEY, deck JSONB, updated_at TIMESTAMP)

設計方針:
- 原子性: upsert は1トランザクション内で SELECT ... FOR UPDATE により行ロックを取得
- 全か無か: mutator が例外を送出した場合は rollback（DatabaseConnection が保証）
- 解放保証: 接続はコンテキスト終了時に必ずプールへ返却
"""

import logging
from datetime import datetime
from typing import List, Optional, TypeVar

from psycopg2.extras import Json

from interleaved_learning.core.study_store import Mutator, StudyStore
from interleaved_learning.db.connection import DatabaseConnection
from interleaved_learning.models.study import Deck, UserState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PostgresStudyStore(StudyStore):
    """PostgreSQL を使用した StudyStore

    使用例:
        db = DatabaseConnection(config.database_url)
        store = PostgresStudyStore(db)
        store.ensure_schema()

        store.upsert("user_01", lambda state: state.ensure_subject("Math"))

    Attributes:
        db: DatabaseConnection インスタンス
    """

    _CREATE_TABLES_SQL = """
        CREATE TABLE IF NOT EXISTS study_user_state (
            user_id TEXT PRIMARY KEY,
            state JSONB NOT NULL,
            updated_at TIMESTAMP NOT NULL
        );
        CREATE TABLE IF NOT EXISTS study_deck (
            deck_name TEXT PRIMARY KEY,
            deck JSONB NOT NULL,
            updated_at TIMESTAMP NOT NULL
        );
    """

    _SELECT_STATE_SQL = """
        SELECT state
        FROM study_user_state
        WHERE user_id = %s
    """

    # 初回作成時の競合は ON CONFLICT で吸収し、その後の FOR UPDATE で直列化する
    _INSERT_EMPTY_STATE_SQL = """
        INSERT INTO study_user_state (user_id, state, updated_at)
        VALUES (%s, %s, %s)
        ON CONFLICT (user_id) DO NOTHING
    """

    _SELECT_STATE_FOR_UPDATE_SQL = """
        SELECT state
        FROM study_user_state
        WHERE user_id = %s
        FOR UPDATE
    """

    _UPDATE_STATE_SQL = """
        UPDATE study_user_state SET
            state = %s,
            updated_at = %s
        WHERE user_id = %s
    """

    _SELECT_DECK_SQL = """
        SELECT deck
        FROM study_deck
        WHERE deck_name = %s
    """

    _UPSERT_DECK_SQL = """
        INSERT INTO study_deck (deck_name, deck, updated_at)
        VALUES (%s, %s, %s)
        ON CONFLICT (deck_name) DO UPDATE SET
            deck = EXCLUDED.deck,
            updated_at = EXCLUDED.updated_at
    """

    _SELECT_DECK_NAMES_SQL = """
        SELECT deck_name
        FROM study_deck
        ORDER BY updated_at, deck_name
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def ensure_schema(self) -> None:
        """テーブルが存在しなければ作成"""
        with self.db.transaction() as cur:
            cur.execute(self._CREATE_TABLES_SQL)
        logger.info("学習状態テーブルを確認しました: study_user_state, study_deck")

    def get(self, user_id: str) -> Optional[UserState]:
        with self.db.transaction() as cur:
            cur.execute(self._SELECT_STATE_SQL, (user_id,))
            row = cur.fetchone()
        if row is None:
            return None
        return UserState.from_dict(row[0])

    def upsert(self, user_id: str, mutator: Mutator[T]) -> T:
        now = datetime.now()
        with self.db.transaction() as cur:
            empty = UserState(user_id=user_id)
            cur.execute(self._INSERT_EMPTY_STATE_SQL, (user_id, Json(empty.to_dict()), now))
            cur.execute(self._SELECT_STATE_FOR_UPDATE_SQL, (user_id,))
            row = cur.fetchone()
            state = UserState.from_dict(row[0]) if row is not None else empty

            result = mutator(state)

            cur.execute(self._UPDATE_STATE_SQL, (Json(state.to_dict()), now, user_id))
        return result

    def get_deck(self, deck_name: str) -> Optional[Deck]:
        with self.db.transaction() as cur:
            cur.execute(self._SELECT_DECK_SQL, (deck_name,))
            row = cur.fetchone()
        if row is None:
            return None
        return Deck.from_dict(row[0])

    def put_deck(self, deck_name: str, deck: Deck) -> None:
        with self.db.transaction() as cur:
            cur.execute(self._UPSERT_DECK_SQL, (deck_name, Json(deck.to_dict()), datetime.now()))
        logger.info(f"デッキ保存: name={deck_name}, cards={len(deck.cards)}")

    def list_deck_names(self) -> List[str]:
        with self.db.transaction() as cur:
            cur.execute(self._SELECT_DECK_NAMES_SQL)
            rows = cur.fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        self.db.close()
