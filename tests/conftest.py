import pytest
from langchain_core.messages import AIMessage


class FakeChatModel:
    """Stands in for the Gemini chat model; replays canned replies."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return AIMessage(content=reply)


@pytest.fixture
def fake_llm():
    return FakeChatModel
