"""SQLite-backed repository for users, projects, files and chat messages.

Every call opens its own connection, so one ``SQLiteStorage`` can be shared
across request handlers. Foreign keys are enforced; deleting a project
removes its files and chat history with it.
"""

import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path

from .config import get_db_path
from .core import ChatRecord, FileRecord, Project, User

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    name TEXT NOT NULL,
    description TEXT,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    mod_version TEXT NOT NULL DEFAULT '1.0.0',
    minecraft_version TEXT NOT NULL DEFAULT '1.21.5',
    neoforge_version TEXT NOT NULL DEFAULT '1.21.5',
    template TEXT DEFAULT 'empty'
);
CREATE TABLE IF NOT EXISTS files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    path TEXT NOT NULL,
    name TEXT NOT NULL,
    content TEXT,
    is_folder INTEGER NOT NULL DEFAULT 0,
    parent_path TEXT,
    created TEXT NOT NULL,
    updated TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS chat_messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    role TEXT NOT NULL,
    content TEXT NOT NULL,
    timestamp TEXT NOT NULL
);
"""

# Columns a caller may change through update_project.
PROJECT_FIELDS = (
    "name",
    "description",
    "mod_version",
    "minecraft_version",
    "neoforge_version",
    "template",
)


class SQLiteStorage:
    """CRUD access to the codemate database."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._initialized = False

    def init_schema(self) -> None:
        """Create the database file and tables if they do not exist yet."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(sqlite3.connect(str(self.db_path))) as conn:
            conn.executescript(SCHEMA)
        self._initialized = True
        logger.debug("Schema ready at %s", self.db_path)

    # ── Users ────────────────────────────────────────────────────

    def get_user(self, user_id: int) -> User | None:
        row = self._fetchone("SELECT * FROM users WHERE id = ?", (user_id,))
        return _row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> User | None:
        row = self._fetchone("SELECT * FROM users WHERE username = ?", (username,))
        return _row_to_user(row) if row else None

    def create_user(self, username: str, password: str) -> User:
        user_id = self._insert(
            "INSERT INTO users (username, password) VALUES (?, ?)",
            (username, password),
        )
        return User(id=user_id, username=username, password=password)

    # ── Projects ─────────────────────────────────────────────────

    def get_project(self, project_id: int) -> Project | None:
        row = self._fetchone("SELECT * FROM projects WHERE id = ?", (project_id,))
        return _row_to_project(row) if row else None

    def get_projects_by_user_id(self, user_id: int) -> list[Project]:
        """Return a user's projects, most recently updated first."""
        rows = self._fetchall(
            "SELECT * FROM projects WHERE user_id = ? ORDER BY updated DESC, id DESC",
            (user_id,),
        )
        return [_row_to_project(r) for r in rows]

    def create_project(
        self,
        user_id: int,
        name: str,
        description: str | None = None,
        mod_version: str = "1.0.0",
        minecraft_version: str = "1.21.5",
        neoforge_version: str = "1.21.5",
        template: str | None = "empty",
    ) -> Project:
        now = _now()
        project_id = self._insert(
            "INSERT INTO projects (user_id, name, description, created, updated, "
            "mod_version, minecraft_version, neoforge_version, template) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (user_id, name, description, now.isoformat(), now.isoformat(),
             mod_version, minecraft_version, neoforge_version, template),
        )
        return self.get_project(project_id)

    def update_project(self, project_id: int, **changes) -> Project | None:
        """Apply partial changes and bump ``updated``. Unknown keys raise ValueError."""
        unknown = set(changes) - set(PROJECT_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update project fields: {', '.join(sorted(unknown))}")

        assignments = [f"{col} = ?" for col in changes] + ["updated = ?"]
        params = list(changes.values()) + [_now().isoformat(), project_id]
        count = self._execute(
            f"UPDATE projects SET {', '.join(assignments)} WHERE id = ?", params
        )
        if not count:
            return None
        return self.get_project(project_id)

    def delete_project(self, project_id: int) -> bool:
        return self._execute("DELETE FROM projects WHERE id = ?", (project_id,)) > 0

    # ── Files ────────────────────────────────────────────────────

    def get_file(self, file_id: int) -> FileRecord | None:
        row = self._fetchone("SELECT * FROM files WHERE id = ?", (file_id,))
        return _row_to_file(row) if row else None

    def get_files_by_project_id(self, project_id: int) -> list[FileRecord]:
        rows = self._fetchall(
            "SELECT * FROM files WHERE project_id = ? ORDER BY id", (project_id,)
        )
        return [_row_to_file(r) for r in rows]

    def create_file(
        self,
        project_id: int,
        path: str,
        name: str,
        content: str | None = None,
        is_folder: bool = False,
        parent_path: str | None = None,
    ) -> FileRecord:
        now = _now().isoformat()
        file_id = self._insert(
            "INSERT INTO files (project_id, path, name, content, is_folder, parent_path, created, updated) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (project_id, path, name, content, int(is_folder), parent_path, now, now),
        )
        return self.get_file(file_id)

    def update_file(self, file_id: int, content: str) -> FileRecord | None:
        count = self._execute(
            "UPDATE files SET content = ?, updated = ? WHERE id = ?",
            (content, _now().isoformat(), file_id),
        )
        if not count:
            return None
        return self.get_file(file_id)

    def delete_file(self, file_id: int) -> bool:
        return self._execute("DELETE FROM files WHERE id = ?", (file_id,)) > 0

    # ── Chat ─────────────────────────────────────────────────────

    def get_chat_messages_by_project_id(self, project_id: int) -> list[ChatRecord]:
        rows = self._fetchall(
            "SELECT * FROM chat_messages WHERE project_id = ? ORDER BY timestamp, id",
            (project_id,),
        )
        return [_row_to_chat(r) for r in rows]

    def create_chat_message(self, project_id: int, role: str, content: str) -> ChatRecord:
        now = _now()
        message_id = self._insert(
            "INSERT INTO chat_messages (project_id, role, content, timestamp) VALUES (?, ?, ?, ?)",
            (project_id, role, content, now.isoformat()),
        )
        return ChatRecord(id=message_id, project_id=project_id, role=role, content=content, timestamp=now)

    # ── Private helpers ──────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        if not self._initialized:
            self.init_schema()
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _fetchone(self, sql: str, params=()) -> sqlite3.Row | None:
        with closing(self._connect()) as conn:
            return conn.execute(sql, params).fetchone()

    def _fetchall(self, sql: str, params=()) -> list[sqlite3.Row]:
        with closing(self._connect()) as conn:
            return conn.execute(sql, params).fetchall()

    def _execute(self, sql: str, params=()) -> int:
        """Run a write statement and return the affected row count."""
        with closing(self._connect()) as conn, conn:
            return conn.execute(sql, params).rowcount

    def _insert(self, sql: str, params=()) -> int:
        with closing(self._connect()) as conn, conn:
            return conn.execute(sql, params).lastrowid


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _row_to_user(row: sqlite3.Row) -> User:
    return User(id=row["id"], username=row["username"], password=row["password"])


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        created=_parse_ts(row["created"]),
        updated=_parse_ts(row["updated"]),
        mod_version=row["mod_version"],
        minecraft_version=row["minecraft_version"],
        neoforge_version=row["neoforge_version"],
        template=row["template"],
    )


def _row_to_file(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        id=row["id"],
        project_id=row["project_id"],
        path=row["path"],
        name=row["name"],
        content=row["content"],
        is_folder=bool(row["is_folder"]),
        parent_path=row["parent_path"],
        created=_parse_ts(row["created"]),
        updated=_parse_ts(row["updated"]),
    )


def _row_to_chat(row: sqlite3.Row) -> ChatRecord:
    return ChatRecord(
        id=row["id"],
        project_id=row["project_id"],
        role=row["role"],
        content=row["content"],
        timestamp=_parse_ts(row["timestamp"]),
    )


def open_storage() -> SQLiteStorage:
    """Return storage at the configured database path."""
    return SQLiteStorage(get_db_path())
