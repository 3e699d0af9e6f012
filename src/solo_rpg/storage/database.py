"""SQLite persistence for turn artifacts.

Stores:
- Chat messages and roll log entries per campaign
- Characters, serialized as JSON

Default location comes from ``StorageSettings.database_path``.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

from solo_rpg.core.config import get_settings
from solo_rpg.core.exceptions import StorageError
from solo_rpg.core.logging import get_logger
from solo_rpg.models.campaign import Message, MessageRole, Roll
from solo_rpg.models.character import Character
from solo_rpg.storage.repository import CharacterFieldWriter

logger = get_logger(__name__)


def _timestamp(value: datetime) -> str:
    # Fixed-width text so ordering and comparisons work on the column.
    return value.isoformat(timespec="microseconds")


class SqliteTurnRepository(CharacterFieldWriter):
    """SQLite-backed TurnRepository.

    Example:
        >>> repo = SqliteTurnRepository(tmp_path / "game.db")
        >>> repo.create_message(Message(campaign_id="c1", role=MessageRole.USER, content="Hi"))
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path | None = None) -> None:
        """Open (and create if needed) the database.

        Args:
            db_path: Path to database file. If None, uses the configured path.
        """
        if db_path is None:
            self.db_path = Path(get_settings().storage.database_path)
        else:
            self.db_path = Path(db_path)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

        logger.info("Turn database initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise StorageError(
                f"Cannot open database: {exc}",
                details={"path": str(self.db_path)},
            ) from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS messages (
                    id TEXT PRIMARY KEY,
                    campaign_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS rolls (
                    id TEXT PRIMARY KEY,
                    campaign_id TEXT NOT NULL,
                    notation TEXT NOT NULL,
                    result INTEGER NOT NULL,
                    breakdown TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS characters (
                    id TEXT PRIMARY KEY,
                    campaign_id TEXT NOT NULL,
                    character_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_messages_campaign
                ON messages(campaign_id, created_at)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_rolls_campaign
                ON rolls(campaign_id, created_at)
            """)

            cursor.execute("""
                INSERT OR REPLACE INTO schema_version (version) VALUES (?)
            """, (self.SCHEMA_VERSION,))

    # =========================================================================
    # Messages
    # =========================================================================

    @staticmethod
    def _message_from_row(row: Any) -> Message:
        return Message(
            id=row["id"],
            campaign_id=row["campaign_id"],
            role=MessageRole(row["role"]),
            content=row["content"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def create_message(self, message: Message) -> Message:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO messages (id, campaign_id, role, content, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (
                message.id,
                message.campaign_id,
                message.role.value,
                message.content,
                _timestamp(message.created_at),
            ))
        return message

    def list_messages(self, campaign_id: str) -> list[Message]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT id, campaign_id, role, content, created_at
                FROM messages WHERE campaign_id = ? ORDER BY created_at, rowid
            """, (campaign_id,)).fetchall()
        return [self._message_from_row(row) for row in rows]

    def delete_messages_after_timestamp(self, campaign_id: str, timestamp: datetime) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM messages WHERE campaign_id = ? AND created_at > ?",
                (campaign_id, _timestamp(timestamp)),
            )
            deleted = cursor.rowcount
        logger.debug("Messages deleted", campaign_id=campaign_id, count=deleted)
        return deleted

    # =========================================================================
    # Rolls
    # =========================================================================

    def create_roll(self, roll: Roll) -> Roll:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO rolls (id, campaign_id, notation, result, breakdown, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                roll.id,
                roll.campaign_id,
                roll.notation,
                roll.result,
                roll.breakdown,
                _timestamp(roll.created_at),
            ))
        return roll

    def list_rolls(self, campaign_id: str) -> list[Roll]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT id, campaign_id, notation, result, breakdown, created_at
                FROM rolls WHERE campaign_id = ? ORDER BY created_at, rowid
            """, (campaign_id,)).fetchall()
        return [
            Roll(
                id=row["id"],
                campaign_id=row["campaign_id"],
                notation=row["notation"],
                result=row["result"],
                breakdown=row["breakdown"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def delete_rolls_after_timestamp(self, campaign_id: str, timestamp: datetime) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM rolls WHERE campaign_id = ? AND created_at > ?",
                (campaign_id, _timestamp(timestamp)),
            )
            deleted = cursor.rowcount
        logger.debug("Rolls deleted", campaign_id=campaign_id, count=deleted)
        return deleted

    # =========================================================================
    # Characters
    # =========================================================================

    def save_character(self, character: Character) -> Character:
        payload = character.model_dump_json(exclude={"is_dead"})
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO characters (id, campaign_id, character_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    character_json = excluded.character_json,
                    updated_at = excluded.updated_at
            """, (
                character.id,
                character.campaign_id,
                payload,
                _timestamp(character.updated_at),
            ))
        return character

    def get_character(self, character_id: str) -> Character | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT character_json FROM characters WHERE id = ?",
                (character_id,),
            ).fetchone()
        if row is None:
            return None
        return Character.model_validate_json(row["character_json"])

    def get_character_by_campaign(self, campaign_id: str) -> Character | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT character_json FROM characters WHERE campaign_id = ?",
                (campaign_id,),
            ).fetchone()
        if row is None:
            return None
        return Character.model_validate_json(row["character_json"])


__all__ = ["SqliteTurnRepository"]
