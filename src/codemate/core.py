"""Core data models for codemate."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class CodeSuggestion:
    """A proposed replacement inside one project file."""

    file_path: str
    original_code: str
    suggested_code: str
    description: str = ""
    start_line: Optional[int] = None
    end_line: Optional[int] = None


@dataclass(frozen=True)
class Message:
    """A single chat message. Immutable once appended to a conversation."""

    role: str  # "user" | "assistant"
    content: str
    timestamp: Optional[datetime] = None
    code_suggestions: tuple[CodeSuggestion, ...] = ()

    def to_payload(self) -> dict:
        """Return the wire form sent to the chat endpoint."""
        return {"role": self.role, "content": self.content}


@dataclass
class ConsoleLogEntry:
    """A line in the IDE console."""

    kind: str  # "success" | "error" | "warning" | "info"
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    on_click: Optional[Callable[[], None]] = None

    @property
    def clickable(self) -> bool:
        return self.on_click is not None


@dataclass
class ProjectFile:
    """A file node in the project tree."""

    name: str
    path: str  # unique across the tree, e.g. "/src/main/java/MySword.java"
    content: str = ""
    kind: str = field(default="file", init=False)


@dataclass
class ProjectFolder:
    """A folder node in the project tree."""

    name: str
    path: str
    children: list["TreeNode"] = field(default_factory=list)
    kind: str = field(default="folder", init=False)


TreeNode = Union[ProjectFile, ProjectFolder]


@dataclass
class ChatSession:
    """A named, dated conversation. One session is current at a time."""

    id: str
    title: str
    preview: str
    date: datetime
    messages: list[Message] = field(default_factory=list)


# ── Persisted records ────────────────────────────────────────────


@dataclass
class User:
    id: int
    username: str
    password: str


@dataclass
class Project:
    """A mod project owned by a user."""

    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    mod_version: str = "1.0.0"
    minecraft_version: str = "1.21.5"
    neoforge_version: str = "1.21.5"
    template: Optional[str] = "empty"


@dataclass
class FileRecord:
    """A stored file or folder row. Folders have no content."""

    id: int
    project_id: int
    path: str
    name: str
    content: Optional[str] = None
    is_folder: bool = False
    parent_path: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass
class ChatRecord:
    """A stored chat message belonging to a project."""

    id: int
    project_id: int
    role: str
    content: str
    timestamp: Optional[datetime] = None
