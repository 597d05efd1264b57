"""SQLite persistence for accounts, posts, usage events, and clones."""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from models import (
    DEFAULT_POST_TONE,
    CloneRecord,
    PostRecord,
    PostStatus,
    QuotaAccount,
    QuotaPlan,
    UsageEvent,
)


class PersistenceError(RuntimeError):
    """Raised when a record cannot be written or read."""


class ContentStore:
    """SQLite-backed record store shared by the pipeline and the API handlers."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def initialize(self) -> None:
        """Initialize SQLite tables if they do not exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    plan TEXT NOT NULL,
                    credits INTEGER NOT NULL CHECK (credits >= 0),
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS linkedin_posts (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    content TEXT NOT NULL,
                    tone TEXT NOT NULL,
                    status TEXT NOT NULL,
                    ai_score INTEGER NOT NULL,
                    human_score INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS api_usage (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    service TEXT NOT NULL,
                    credits_used INTEGER NOT NULL,
                    success INTEGER NOT NULL,
                    response_time_ms INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ai_clones (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL,
                    tone TEXT NOT NULL,
                    personality_json TEXT NOT NULL,
                    sample_posts_json TEXT NOT NULL,
                    is_active INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )

    def upsert_account(self, account: QuotaAccount) -> QuotaAccount:
        """Create or replace a requester's plan and credit balance."""
        if account.remaining < 0:
            raise PersistenceError("remaining credits must be >= 0")

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO profiles (id, plan, credits, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    plan = excluded.plan,
                    credits = excluded.credits,
                    updated_at = excluded.updated_at
                """,
                (account.requester_id, account.plan.value, account.remaining, _now_iso()),
            )

        stored = self.get_account(account.requester_id)
        if stored is None:
            raise PersistenceError(f"Failed to persist account {account.requester_id}")
        return stored

    def get_account(self, requester_id: str) -> QuotaAccount | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT id, plan, credits FROM profiles WHERE id = ?",
                    (requester_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to read account {requester_id}: {exc}") from exc

        if row is None:
            return None

        return QuotaAccount(
            requester_id=row["id"],
            plan=QuotaPlan(row["plan"]),
            remaining=row["credits"],
        )

    def try_decrement_credit(self, requester_id: str, amount: int = 1) -> bool:
        """Atomically take ``amount`` credits from a metered account.

        Returns False when the account is unknown, unlimited, or holds fewer
        than ``amount`` credits; the balance is then left untouched.
        """
        if amount < 1:
            raise ValueError("amount must be >= 1")
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    UPDATE profiles
                    SET credits = credits - ?, updated_at = ?
                    WHERE id = ? AND plan = ? AND credits >= ?
                    """,
                    (amount, _now_iso(), requester_id, QuotaPlan.METERED.value, amount),
                )
                return cursor.rowcount == 1
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to take credits from {requester_id}: {exc}") from exc

    def insert_post(
        self,
        *,
        requester_id: str,
        content: str,
        ai_score: int,
        human_score: int,
        tone: str = DEFAULT_POST_TONE,
        status: PostStatus = PostStatus.DRAFT,
    ) -> PostRecord:
        record = PostRecord(
            id=uuid.uuid4().hex,
            requester_id=requester_id,
            content=content,
            tone=tone,
            status=status,
            ai_score=ai_score,
            human_score=human_score,
            created_at=datetime.now(UTC),
        )
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO linkedin_posts (
                        id,
                        user_id,
                        content,
                        tone,
                        status,
                        ai_score,
                        human_score,
                        created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.requester_id,
                        record.content,
                        record.tone,
                        record.status.value,
                        record.ai_score,
                        record.human_score,
                        record.created_at.isoformat(),
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to store post for {requester_id}: {exc}") from exc
        return record

    def list_posts(self, requester_id: str) -> list[PostRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, content, tone, status, ai_score, human_score, created_at
                FROM linkedin_posts
                WHERE user_id = ?
                ORDER BY created_at ASC
                """,
                (requester_id,),
            ).fetchall()

        return [
            PostRecord(
                id=row["id"],
                requester_id=row["user_id"],
                content=row["content"],
                tone=row["tone"],
                status=PostStatus(row["status"]),
                ai_score=row["ai_score"],
                human_score=row["human_score"],
                created_at=_parse_iso(row["created_at"]),
            )
            for row in rows
        ]

    def append_usage_event(self, event: UsageEvent) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO api_usage (
                        user_id,
                        service,
                        credits_used,
                        success,
                        response_time_ms,
                        created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        event.requester_id,
                        event.service,
                        event.credits_used,
                        int(event.success),
                        event.response_time_ms,
                        event.created_at.isoformat(),
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Failed to append usage event for {event.requester_id}: {exc}"
            ) from exc

    def list_usage_events(self, requester_id: str) -> list[UsageEvent]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT user_id, service, credits_used, success, response_time_ms, created_at
                FROM api_usage
                WHERE user_id = ?
                ORDER BY id ASC
                """,
                (requester_id,),
            ).fetchall()

        return [
            UsageEvent(
                requester_id=row["user_id"],
                service=row["service"],
                credits_used=row["credits_used"],
                success=bool(row["success"]),
                response_time_ms=row["response_time_ms"],
                created_at=_parse_iso(row["created_at"]),
            )
            for row in rows
        ]

    def insert_clone(self, clone: CloneRecord) -> CloneRecord:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO ai_clones (
                        id,
                        user_id,
                        name,
                        description,
                        tone,
                        personality_json,
                        sample_posts_json,
                        is_active,
                        created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        clone.id,
                        clone.requester_id,
                        clone.name,
                        clone.description,
                        clone.tone,
                        json.dumps(list(clone.personality)),
                        json.dumps(list(clone.sample_posts)),
                        int(clone.is_active),
                        clone.created_at.isoformat(),
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to store clone {clone.name!r}: {exc}") from exc
        return clone

    def list_clones(self, requester_id: str) -> list[CloneRecord]:
        """Return a requester's clones, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT
                    id,
                    user_id,
                    name,
                    description,
                    tone,
                    personality_json,
                    sample_posts_json,
                    is_active,
                    created_at
                FROM ai_clones
                WHERE user_id = ?
                ORDER BY created_at DESC
                """,
                (requester_id,),
            ).fetchall()

        return [
            CloneRecord(
                id=row["id"],
                requester_id=row["user_id"],
                name=row["name"],
                description=row["description"],
                tone=row["tone"],
                personality=tuple(json.loads(row["personality_json"])),
                sample_posts=tuple(json.loads(row["sample_posts_json"])),
                is_active=bool(row["is_active"]),
                created_at=_parse_iso(row["created_at"]),
            )
            for row in rows
        ]

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)
