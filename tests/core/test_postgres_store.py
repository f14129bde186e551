# PostgresStudyStore のテスト（DB はモック）
"""
PostgresStudyStore の単体テスト

テスト観点:
- upsert: 空状態の INSERT → FOR UPDATE での取得 → mutator → UPDATE を1トランザクション内で実行
- upsert: mutator が例外を送出した場合は UPDATE せず rollback して例外を伝播
- get / get_deck: 行がなければ None、JSONB から復元
- put_deck: ON CONFLICT で置き換え
"""

from contextlib import contextmanager
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from interleaved_learning.core.postgres_store import PostgresStudyStore
from interleaved_learning.models.study import Deck, Flashcard, UserState


class FakeDatabaseConnection:
    """transaction() だけを持つモック DatabaseConnection"""

    def __init__(self):
        self.cursor = MagicMock()
        self.transactions = []
        self.closed = False

    @contextmanager
    def transaction(self):
        try:
            yield self.cursor
            self.transactions.append("commit")
        except Exception:
            self.transactions.append("rollback")
            raise

    def close(self):
        self.closed = True


@pytest.fixture
def db():
    return FakeDatabaseConnection()


@pytest.fixture
def store(db):
    return PostgresStudyStore(db)


def _executed_sql(cursor):
    return [call.args[0] for call in cursor.execute.call_args_list]


class TestPostgresUpsert:
    """upsert のテスト"""

    def test_upsert_locks_row_and_writes_back(self, store, db):
        """FOR UPDATE で取得した状態を変更して UPDATE する"""
        existing = UserState(user_id="u1")
        existing.ensure_subject("Math")
        db.cursor.fetchone.return_value = (existing.to_dict(),)

        def add_biology(state):
            state.ensure_subject("Biology")
            return list(state.subjects)

        result = store.upsert("u1", add_biology)

        assert result == ["Math", "Biology"]
        assert db.transactions == ["commit"]
        statements = _executed_sql(db.cursor)
        assert len(statements) == 3
        assert "ON CONFLICT (user_id) DO NOTHING" in statements[0]
        assert "FOR UPDATE" in statements[1]
        assert statements[2].strip().startswith("UPDATE study_user_state")

        written = db.cursor.execute.call_args_list[2].args[1][0].adapted
        assert [s["name"] for s in written["subjects"]] == ["Math", "Biology"]

    def test_failed_mutator_skips_update(self, store, db):
        """mutator が例外を送出した場合は UPDATE しない"""
        db.cursor.fetchone.return_value = (UserState(user_id="u1").to_dict(),)

        def failing(state):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            store.upsert("u1", failing)

        assert not any("UPDATE study_user_state" in sql for sql in _executed_sql(db.cursor))
        assert db.transactions == ["rollback"]


class TestPostgresReads:
    """get / get_deck / list_deck_names のテスト"""

    def test_get_missing_user(self, store, db):
        db.cursor.fetchone.return_value = None
        assert store.get("nobody") is None

    def test_get_restores_state(self, store, db):
        state = UserState(user_id="u1")
        state.ensure_subject("Math").add_topics(["algebra"])
        db.cursor.fetchone.return_value = (state.to_dict(),)

        assert store.get("u1") == state

    def test_get_deck(self, store, db):
        deck = Deck(name="mixed", cards=[Flashcard(front="a", back="b", topic="T")])
        db.cursor.fetchone.return_value = (deck.to_dict(),)

        assert store.get_deck("mixed") == deck

    def test_get_deck_missing(self, store, db):
        db.cursor.fetchone.return_value = None
        assert store.get_deck("missing") is None

    def test_list_deck_names(self, store, db):
        db.cursor.fetchall.return_value = [("a",), ("b",)]
        assert store.list_deck_names() == ["a", "b"]


class TestPostgresWrites:
    """put_deck / ensure_schema / close のテスト"""

    def test_put_deck_upserts(self, store, db):
        deck = Deck(name="mixed", cards=[Flashcard(front="a", back="b", topic="T")])
        store.put_deck("mixed", deck)

        sql, params = db.cursor.execute.call_args.args
        assert "ON CONFLICT (deck_name) DO UPDATE" in sql
        assert params[0] == "mixed"
        assert params[1].adapted == deck.to_dict()
        assert isinstance(params[2], datetime)

    def test_ensure_schema_creates_tables(self, store, db):
        store.ensure_schema()
        sql = db.cursor.execute.call_args.args[0]
        assert "CREATE TABLE IF NOT EXISTS study_user_state" in sql
        assert "CREATE TABLE IF NOT EXISTS study_deck" in sql

    def test_close_closes_database(self, store, db):
        store.close()
        assert db.closed
