"""Shared test fixtures for codemate."""

import asyncio

import pytest

from codemate.core import Message
from codemate.storage import SQLiteStorage
from codemate.tree import default_project_structure
from codemate.vendor import VendorError


class FakeVendor:
    """Stands in for VendorClient; records every call it receives."""

    model = "fake-model"

    def __init__(self, reply: str = "Here is your mod code.", error: VendorError | None = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, system, messages, max_tokens):
        self.calls.append({"system": system, "messages": messages, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.reply


class ScriptedGateway:
    """Gateway double whose replies are released by the test.

    Each call parks on a future; ``resolve(i, text)`` completes the i-th call
    (in submission order) and ``fail(i)`` makes it raise.
    """

    def __init__(self):
        self.histories = []
        self._futures = []

    async def get_chat_response(self, messages):
        self.histories.append(list(messages))
        fut = asyncio.get_running_loop().create_future()
        self._futures.append(fut)
        return await fut

    def resolve(self, index: int, text: str):
        self._futures[index].set_result(Message(role="assistant", content=text))

    def fail(self, index: int, exc: Exception):
        self._futures[index].set_exception(exc)


class EchoGateway:
    """Gateway double that answers immediately."""

    def __init__(self):
        self.histories = []

    async def get_chat_response(self, messages):
        self.histories.append(list(messages))
        return Message(role="assistant", content=f"reply to: {messages[-1].content}")


@pytest.fixture
def fake_vendor():
    return FakeVendor()


@pytest.fixture
def storage(tmp_path):
    """A fresh database in a temp directory."""
    return SQLiteStorage(tmp_path / "data" / "codemate.db")


@pytest.fixture
def user(storage):
    return storage.create_user("steve", "hunter2")


@pytest.fixture
def project_tree():
    return default_project_structure()


@pytest.fixture
def echo_gateway():
    return EchoGateway()


@pytest.fixture
def scripted_gateway():
    return ScriptedGateway()
