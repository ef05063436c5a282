"""Tests for the session state manager."""

import asyncio
import dataclasses

import pytest

from codemate.core import CodeSuggestion, ConsoleLogEntry, ProjectFile
from codemate.gateway import APOLOGY
from codemate.prompts import CONTINUE_DEVELOPMENT
from codemate.state import SessionState

SWORD = "/src/main/java/MySword.java"
ORE = "/src/main/java/CorruptOreBlock.java"


class TestFiles:
    def test_default_selection_is_my_sword(self, echo_gateway):
        state = SessionState(echo_gateway)
        assert state.selected_file is not None
        assert state.selected_file.path == SWORD

    def test_selection_follows_content_update(self, echo_gateway):
        state = SessionState(echo_gateway)
        ore = next(f for f in state.project_structure[0].children[0].children[0].children if f.path == ORE)

        state.select_file(ore)
        assert state.update_file_content(ORE, "new") is True
        assert state.selected_file.content == "new"

    def test_stale_selection_snapshot_is_refreshed(self, echo_gateway):
        state = SessionState(echo_gateway)
        snapshot = dataclasses.replace(state.selected_file)
        state.select_file(snapshot)

        state.update_file_content(SWORD, "updated")
        assert state.selected_file.content == "updated"

    def test_missing_path_reports_not_found(self, echo_gateway):
        state = SessionState(echo_gateway)
        before = state.selected_file.content
        assert state.update_file_content("/nowhere.java", "x") is False
        assert state.selected_file.content == before

    def test_other_selection_untouched(self, echo_gateway):
        state = SessionState(echo_gateway)
        state.update_file_content(ORE, "ore body")
        assert state.selected_file.path == SWORD
        assert "ore body" not in state.selected_file.content

    def test_detached_selection_untouched_by_missing_path(self, echo_gateway):
        state = SessionState(echo_gateway)
        detached = ProjectFile("X.java", "/x.java", "old")
        state.select_file(detached)

        assert state.update_file_content("/x.java", "new") is False
        assert state.selected_file is detached
        assert state.selected_file.content == "old"

    def test_apply_suggestion(self, echo_gateway):
        state = SessionState(echo_gateway)
        suggestion = CodeSuggestion(
            file_path=SWORD,
            original_code="extends SwordItem",
            suggested_code="extends Item",
            description="Use the component system",
        )
        assert state.apply_suggestion(suggestion) is True
        assert "extends Item" in state.selected_file.content

    def test_apply_suggestion_that_does_not_fit(self, echo_gateway):
        state = SessionState(echo_gateway)
        suggestion = CodeSuggestion(SWORD, "class Missing", "class Other")
        assert state.apply_suggestion(suggestion) is False


class TestConsole:
    def test_clear_then_add_keeps_call_order(self, echo_gateway):
        state = SessionState(echo_gateway)
        assert state.console_output  # seeded

        state.clear_console()
        entries = [
            ConsoleLogEntry("info", "Compiling"),
            ConsoleLogEntry("warning", "Deprecated API"),
            ConsoleLogEntry("error", "Build failed"),
        ]
        for entry in entries:
            state.add_console_entry(entry)

        assert state.console_output == entries

    def test_error_logs(self, echo_gateway):
        state = SessionState(echo_gateway, console=[
            ConsoleLogEntry("success", "ok"),
            ConsoleLogEntry("error", "first"),
            ConsoleLogEntry("error", "second", on_click=lambda: None),
        ])
        assert state.error_logs() == ["first", "second"]
        assert state.console_output[2].clickable is True
        assert state.console_output[1].clickable is False


class TestChat:
    @pytest.mark.asyncio
    async def test_sequential_messages_alternate(self, echo_gateway):
        state = SessionState(echo_gateway)
        for i in range(3):
            await state.add_user_message(f"question {i}")

        messages = state.chat_messages
        assert len(messages) == 6
        assert [m.role for m in messages] == ["user", "assistant"] * 3
        assert messages[1].content == "reply to: question 0"

    @pytest.mark.asyncio
    async def test_gateway_receives_full_history(self, echo_gateway):
        state = SessionState(echo_gateway)
        await state.add_user_message("one")
        await state.add_user_message("two")

        last = echo_gateway.histories[-1]
        assert [m.content for m in last] == ["one", "reply to: one", "two"]

    @pytest.mark.asyncio
    async def test_thinking_flag_on_success(self, scripted_gateway):
        state = SessionState(scripted_gateway)
        assert state.is_thinking is False

        task = asyncio.create_task(state.add_user_message("hi"))
        await asyncio.sleep(0)
        assert state.is_thinking is True

        scripted_gateway.resolve(0, "hello")
        reply = await task
        assert reply.content == "hello"
        assert state.is_thinking is False

    @pytest.mark.asyncio
    async def test_thinking_flag_on_failure(self, scripted_gateway):
        state = SessionState(scripted_gateway)

        task = asyncio.create_task(state.add_user_message("hi"))
        await asyncio.sleep(0)
        assert state.is_thinking is True

        scripted_gateway.fail(0, RuntimeError("vendor exploded"))
        reply = await task
        assert reply.content == APOLOGY
        assert state.is_thinking is False
        assert [m.role for m in state.chat_messages] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_out_of_order_replies_keep_submission_order(self, scripted_gateway):
        state = SessionState(scripted_gateway)

        first = asyncio.create_task(state.add_user_message("first"))
        await asyncio.sleep(0)
        second = asyncio.create_task(state.add_user_message("second"))
        await asyncio.sleep(0)

        scripted_gateway.resolve(1, "reply two")
        await second
        # Held back until the first reply lands
        assert [m.content for m in state.chat_messages] == ["first", "second"]
        assert state.is_thinking is True

        scripted_gateway.resolve(0, "reply one")
        await first
        assert [m.content for m in state.chat_messages] == ["first", "second", "reply one", "reply two"]
        assert state.is_thinking is False

    @pytest.mark.asyncio
    async def test_reset_drops_in_flight_reply(self, scripted_gateway):
        state = SessionState(scripted_gateway)

        task = asyncio.create_task(state.add_user_message("hi"))
        await asyncio.sleep(0)
        state.reset_chat()
        assert state.chat_messages == []

        scripted_gateway.resolve(0, "late reply")
        await task
        assert state.chat_messages == []
        assert state.is_thinking is False

    @pytest.mark.asyncio
    async def test_messages_after_reset_are_not_blocked(self, scripted_gateway):
        state = SessionState(scripted_gateway)

        stale = asyncio.create_task(state.add_user_message("old"))
        await asyncio.sleep(0)
        state.reset_chat()

        fresh = asyncio.create_task(state.add_user_message("new"))
        await asyncio.sleep(0)
        scripted_gateway.resolve(1, "fresh reply")
        await fresh
        assert [m.content for m in state.chat_messages] == ["new", "fresh reply"]

        scripted_gateway.resolve(0, "stale reply")
        await stale
        assert [m.content for m in state.chat_messages] == ["new", "fresh reply"]

    @pytest.mark.asyncio
    async def test_cancelled_request_does_not_block_later_replies(self, scripted_gateway):
        state = SessionState(scripted_gateway)

        first = asyncio.create_task(state.add_user_message("first"))
        await asyncio.sleep(0)
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        assert state.is_thinking is False

        second = asyncio.create_task(state.add_user_message("second"))
        await asyncio.sleep(0)
        scripted_gateway.resolve(1, "reply two")
        await second

        assert [m.content for m in state.chat_messages] == ["first", "second", "reply two"]

    @pytest.mark.asyncio
    async def test_cancel_while_later_reply_is_buffered(self, scripted_gateway):
        state = SessionState(scripted_gateway)

        first = asyncio.create_task(state.add_user_message("first"))
        await asyncio.sleep(0)
        second = asyncio.create_task(state.add_user_message("second"))
        await asyncio.sleep(0)

        scripted_gateway.resolve(1, "reply two")
        await second
        assert [m.content for m in state.chat_messages] == ["first", "second"]

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        assert [m.content for m in state.chat_messages] == ["first", "second", "reply two"]
        assert state.is_thinking is False

    @pytest.mark.asyncio
    async def test_reply_code_becomes_suggestion(self, scripted_gateway):
        state = SessionState(scripted_gateway)
        new_sword = "public class MySword extends Item {\n}"

        task = asyncio.create_task(state.add_user_message("Update my sword"))
        await asyncio.sleep(0)
        scripted_gateway.resolve(0, f"Try this:\n```java\n{new_sword}\n```")
        reply = await task

        assert len(reply.code_suggestions) == 1
        suggestion = reply.code_suggestions[0]
        assert suggestion.file_path == SWORD
        assert state.chat_messages[-1].code_suggestions == (suggestion,)

        assert state.apply_suggestion(suggestion) is True
        assert state.selected_file.content == new_sword

    @pytest.mark.asyncio
    async def test_plain_reply_has_no_suggestions(self, echo_gateway):
        reply = await SessionState(echo_gateway).add_user_message("hello")
        assert reply.code_suggestions == ()

    @pytest.mark.asyncio
    async def test_continue_development(self, echo_gateway):
        state = SessionState(echo_gateway)
        await state.continue_development()
        assert state.chat_messages[0].content == CONTINUE_DEVELOPMENT

    @pytest.mark.asyncio
    async def test_fix_error_embeds_console_errors(self, echo_gateway):
        state = SessionState(echo_gateway, console=[
            ConsoleLogEntry("error", "NullPointerException at line 42"),
            ConsoleLogEntry("info", "not an error"),
            ConsoleLogEntry("error", "Missing registry entry"),
        ])
        await state.fix_error()

        prompt = state.chat_messages[0].content
        assert prompt.startswith("I'm getting the following error(s)")
        assert prompt.endswith("NullPointerException at line 42\nMissing registry entry")
        assert "not an error" not in prompt

    @pytest.mark.asyncio
    async def test_share_files(self, echo_gateway):
        state = SessionState(echo_gateway)
        assert await state.share_files([]) is None

        await state.share_files([("Block.java", "class Block {}")])
        prompt = state.chat_messages[0].content
        assert "File: Block.java\n```\nclass Block {}\n```" in prompt


class TestSessions:
    @pytest.mark.asyncio
    async def test_first_message_creates_session(self, echo_gateway):
        state = SessionState(echo_gateway, project_name="Ruby Mod")
        assert state.current_session is None

        await state.add_user_message("Create a custom ruby sword for my mod please")
        session = state.current_session
        assert session.title == "Ruby Mod Chat"
        assert session.preview == "Create a custom ruby sword for my mod pl..."
        assert len(session.messages) == 2

    def test_create_new_chat_is_prepended_and_current(self, echo_gateway):
        state = SessionState(echo_gateway)
        a = state.create_new_chat()
        b = state.create_new_chat()
        assert [s.id for s in state.sessions] == [b.id, a.id]
        assert state.current_session_id == b.id
        assert b.preview == "New conversation"

    @pytest.mark.asyncio
    async def test_switching_sessions(self, echo_gateway):
        state = SessionState(echo_gateway)
        a = state.create_new_chat()
        await state.add_user_message("in a")
        b = state.create_new_chat()
        assert state.chat_messages == []

        assert state.load_chat_history(a.id) is True
        assert [m.content for m in state.chat_messages] == ["in a", "reply to: in a"]
        assert state.load_chat_history("missing") is False
        assert state.current_session_id == a.id
        assert b.messages == []

    @pytest.mark.asyncio
    async def test_reply_lands_in_originating_session(self, scripted_gateway):
        state = SessionState(scripted_gateway)
        a = state.create_new_chat()

        task = asyncio.create_task(state.add_user_message("question"))
        await asyncio.sleep(0)
        b = state.create_new_chat()

        scripted_gateway.resolve(0, "answer")
        await task
        assert [m.content for m in a.messages] == ["question", "answer"]
        assert b.messages == []

    def test_chat_messages_is_a_copy(self, echo_gateway):
        state = SessionState(echo_gateway)
        state.create_new_chat()
        state.chat_messages.append("junk")
        assert state.chat_messages == []

    def test_tree_is_injected(self, echo_gateway):
        only = ProjectFile("Main.java", "/Main.java", "class Main {}")
        state = SessionState(echo_gateway, structure=[only], console=[])
        assert state.selected_file is None
        assert state.update_file_content("/Main.java", "x") is True
        assert only.content == "x"
