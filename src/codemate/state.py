"""Session state manager: project tree, console and chat conversations.

One ``SessionState`` is built per IDE session and handed to whatever needs it;
there is no module-level instance.

Chat replies are ordered per session. Every submission takes the next
sequence number, and a reply that resolves early waits in a buffer until all
lower-numbered replies of that session have been appended. ``reset_chat``
starts a fresh sequence, so replies to requests made before the reset are
dropped instead of landing in the cleared conversation.
"""

import dataclasses
import logging
import uuid
from datetime import datetime

from . import tree
from .core import ChatSession, CodeSuggestion, ConsoleLogEntry, Message, ProjectFile, TreeNode
from .gateway import APOLOGY, AssistantGateway
from .prompts import CONTINUE_DEVELOPMENT, FIX_ERROR_PREFIX
from .snippets import apply_suggestion, format_shared_files, suggest_edits

logger = logging.getLogger(__name__)

DEFAULT_SELECTED_PATH = "/src/main/java/MySword.java"
PREVIEW_LENGTH = 40


def default_console_output() -> list[ConsoleLogEntry]:
    """Console lines shown when a session starts."""
    return [
        ConsoleLogEntry("success", "BUILD SUCCESSFUL"),
        ConsoleLogEntry("success", "GRADLE BUILD SUCCESSFUL at: CorruptOreBlock.java:42"),
        ConsoleLogEntry("error", "NullPointerException at line 42 CorruptOreBlock.java"),
    ]


class _ReplyOrder:
    """Sequence bookkeeping for one session's outstanding requests."""

    def __init__(self):
        self.next_seq = 0
        self.next_to_append = 0
        self.ready: dict[int, Message | None] = {}


class SessionState:
    """Authoritative in-memory state for one open project."""

    def __init__(
        self,
        gateway: AssistantGateway,
        project_name: str = "Example Mod",
        structure: list[TreeNode] | None = None,
        console: list[ConsoleLogEntry] | None = None,
    ):
        self.gateway = gateway
        self.project_name = project_name
        self.project_structure: list[TreeNode] = (
            structure if structure is not None else tree.default_project_structure()
        )
        self.console_output: list[ConsoleLogEntry] = (
            list(console) if console is not None else default_console_output()
        )
        self.selected_file: ProjectFile | None = tree.find_file(self.project_structure, DEFAULT_SELECTED_PATH)
        self.sessions: list[ChatSession] = []
        self.current_session_id: str | None = None
        self._in_flight = 0
        self._orders: dict[str, _ReplyOrder] = {}

    # ── Files ────────────────────────────────────────────────────

    def select_file(self, file: ProjectFile) -> None:
        self.selected_file = file

    def update_file_content(self, path: str, content: str) -> bool:
        """Update the first file at ``path``. Returns False if no file has it.

        The selection follows the change when it points at the same path.
        """
        found = tree.update_file_content(self.project_structure, path, content)

        if not found:
            logger.debug("No file at %s; tree and selection unchanged", path)
            return False

        selected = self.selected_file
        if selected is not None and selected.path == path:
            self.selected_file = tree.find_file(self.project_structure, path)
        return True

    def apply_suggestion(self, suggestion: CodeSuggestion) -> bool:
        """Apply an assistant code suggestion to its target file."""
        target = tree.find_file(self.project_structure, suggestion.file_path)
        if target is None:
            return False
        updated = apply_suggestion(target.content, suggestion)
        if updated is None:
            return False
        return self.update_file_content(target.path, updated)

    # ── Console ──────────────────────────────────────────────────

    def add_console_entry(self, entry: ConsoleLogEntry) -> None:
        self.console_output.append(entry)

    def clear_console(self) -> None:
        self.console_output = []

    def error_logs(self) -> list[str]:
        return [e.message for e in self.console_output if e.kind == "error"]

    # ── Chat sessions ────────────────────────────────────────────

    @property
    def is_thinking(self) -> bool:
        """True while at least one assistant call is outstanding."""
        return self._in_flight > 0

    @property
    def current_session(self) -> ChatSession | None:
        return self._find_session(self.current_session_id)

    @property
    def chat_messages(self) -> list[Message]:
        """A copy of the current conversation, oldest first."""
        session = self.current_session
        return list(session.messages) if session else []

    def create_new_chat(self) -> ChatSession:
        """Start a new conversation and make it current."""
        session = ChatSession(
            id=uuid.uuid4().hex[:13],
            title=f"{self.project_name} Chat",
            preview="New conversation",
            date=datetime.now(),
        )
        self.sessions.insert(0, session)
        self.current_session_id = session.id
        self._orders[session.id] = _ReplyOrder()
        return session

    def load_chat_history(self, session_id: str) -> bool:
        """Switch to an existing conversation. Returns False for unknown IDs."""
        if self._find_session(session_id) is None:
            return False
        self.current_session_id = session_id
        return True

    def reset_chat(self) -> None:
        """Clear the current conversation; pending replies to it are dropped."""
        session = self.current_session
        if session is None:
            return
        session.messages.clear()
        session.preview = "New conversation"
        self._orders[session.id] = _ReplyOrder()

    # ── Assistant ────────────────────────────────────────────────

    async def add_user_message(self, content: str) -> Message:
        """Append a user message, then the assistant's reply once it arrives.

        Returns the reply. Gateway failures surface as the apology message so
        every submission yields exactly one reply.
        """
        session = self.current_session or self.create_new_chat()
        order = self._orders.setdefault(session.id, _ReplyOrder())

        user_message = Message(role="user", content=content, timestamp=datetime.now())
        session.messages.append(user_message)
        session.preview = content[:PREVIEW_LENGTH] + "..."
        history = list(session.messages)

        seq = order.next_seq
        order.next_seq += 1

        reply = None
        self._in_flight += 1
        try:
            reply = await self.gateway.get_chat_response(history)
        except Exception as e:
            logger.error("Error getting response from assistant: %s", e)
            reply = Message(role="assistant", content=APOLOGY, timestamp=datetime.now())
        finally:
            self._in_flight -= 1
            if reply is None:
                # Cancelled: free the slot so later replies are not held back
                logger.debug("Request %d in session %s was cancelled", seq, session.id)
                self._deliver(session, order, seq, None)

        suggestions = suggest_edits(reply.content, tree.iter_files(self.project_structure))
        if suggestions:
            reply = dataclasses.replace(reply, code_suggestions=suggestions)

        self._deliver(session, order, seq, reply)
        return reply

    async def continue_development(self) -> Message:
        return await self.add_user_message(CONTINUE_DEVELOPMENT)

    async def fix_error(self) -> Message:
        """Ask the assistant about every error currently in the console."""
        return await self.add_user_message(FIX_ERROR_PREFIX + "\n".join(self.error_logs()))

    async def share_files(self, files: list[tuple[str, str]]) -> Message | None:
        """Send uploaded ``(name, content)`` files to the assistant."""
        if not files:
            return None
        return await self.add_user_message(format_shared_files(files))

    # ── Private helpers ──────────────────────────────────────────

    def _find_session(self, session_id: str | None) -> ChatSession | None:
        if session_id is None:
            return None
        return next((s for s in self.sessions if s.id == session_id), None)

    def _deliver(self, session: ChatSession, order: _ReplyOrder, seq: int, reply: Message | None) -> None:
        """Buffer ``reply`` and append every reply now in sequence.

        A None reply marks a cancelled request; its slot is skipped.
        """
        if self._orders.get(session.id) is not order:
            logger.debug("Dropping reply %d for reset session %s", seq, session.id)
            return

        order.ready[seq] = reply
        while order.next_to_append in order.ready:
            message = order.ready.pop(order.next_to_append)
            if message is not None:
                session.messages.append(message)
            order.next_to_append += 1
