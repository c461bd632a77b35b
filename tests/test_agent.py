import json

import pytest
from google.api_core import exceptions as google_exceptions
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from trip_timeline.core import agent as agent_module
from trip_timeline.core.agent import (
    DEFAULT_ACKNOWLEDGEMENT,
    EMPTY_RESPONSE_QUESTION,
    MEMORY_HEADER,
    MISSING_KEY_QUESTION,
    TravelAgent,
    build_snapshot_context,
)
from trip_timeline.core.memory import build_attachment_turn

TRANSCRIPT = [
    {"role": "assistant", "content": "Where are you going?"},
    {"role": "user", "content": "Rome, flying TAP on 2026-03-17"},
]


def test_snapshot_context_for_blank_record():
    assert build_snapshot_context({}) == "Blank record."
    assert build_snapshot_context(None) == "Blank record."


def test_snapshot_context_summarises_days():
    context = build_snapshot_context({
        "destination": "Rome",
        "startDate": "2026-03-17",
        "days": [
            {"date": "2026-03-17", "type": "flight", "title": "TP 842"},
            {"date": "2026-03-18", "type": "hotel"},
        ],
    })
    assert context == (
        "Current record: Destination: Rome. Start: 2026-03-17. "
        "Registered days (2): 2026-03-17 flight - TP 842; 2026-03-18 hotel"
    )


@pytest.mark.parametrize("api_key", [None, "", "   "])
def test_missing_key_never_builds_a_model(monkeypatch, api_key):
    def fail(**kwargs):
        raise AssertionError("model must not be built without a key")

    monkeypatch.setattr(agent_module, "ChatGoogleGenerativeAI", fail)
    response = TravelAgent(api_key).reply(TRANSCRIPT, {})
    assert response == {"question": MISSING_KEY_QUESTION, "done": False}


def test_injected_model_is_unused_without_a_key(fake_llm):
    llm = fake_llm('{"question": "Which airline?", "done": false}')
    agent = TravelAgent(None, llm=llm)
    assert agent.configured is False
    assert agent.reply(TRANSCRIPT, {}) == {"question": MISSING_KEY_QUESTION, "done": False}
    assert agent.build_from_attachments("Hotel Roma") == {"question": MISSING_KEY_QUESTION, "done": False}
    assert llm.calls == []


def test_model_is_built_with_the_injected_key(monkeypatch, fake_llm):
    built = {}

    def factory(**kwargs):
        built.update(kwargs)
        return fake_llm('{"question": "Which airline?", "done": false}')

    monkeypatch.setattr(agent_module, "ChatGoogleGenerativeAI", factory)
    response = TravelAgent("test-key", model_config={"model": "gemini-test"}).reply(TRANSCRIPT, {})
    assert built == {"google_api_key": "test-key", "model": "gemini-test"}
    assert response == {"question": "Which airline?", "done": False}


def test_structured_reply_with_patch(fake_llm):
    reply = json.dumps({
        "question": "Which hotel?",
        "formUpdates": {"destination": "Rome", "days": [{"date": "2026-03-17", "type": "flight"}]},
        "done": False,
    })
    response = TravelAgent("key", llm=fake_llm(reply)).reply(TRANSCRIPT, {})
    assert response["question"] == "Which hotel?"
    assert response["formUpdates"]["destination"] == "Rome"
    assert response["done"] is False


def test_prompt_carries_context_and_transcript(fake_llm):
    llm = fake_llm('{"question": "ok"}')
    TravelAgent("key", llm=llm, system_prompt="PROMPT").reply(TRANSCRIPT, {"destination": "Rome"})
    sent = llm.calls[0]
    assert isinstance(sent[0], SystemMessage)
    assert sent[0].content == "PROMPT\n\nCurrent record: Destination: Rome"
    assert isinstance(sent[1], AIMessage) and sent[1].content == "Where are you going?"
    assert isinstance(sent[2], HumanMessage) and sent[2].content == TRANSCRIPT[1]["content"]


def test_attachment_memory_is_added_to_system_prompt(fake_llm):
    llm = fake_llm('{"question": "ok"}')
    messages = TRANSCRIPT + [build_attachment_turn("--- hotel.pdf ---\nHotel Roma")]
    TravelAgent("key", llm=llm).reply(messages, {})
    system = llm.calls[0][0].content
    assert system.endswith(f"{MEMORY_HEADER}\n\n--- hotel.pdf ---\nHotel Roma")


def test_unparseable_reply_degrades_to_raw_text(fake_llm):
    response = TravelAgent("key", llm=fake_llm("Sure, no problem!")).reply(TRANSCRIPT, {})
    assert response == {"question": "Sure, no problem!", "done": False}


def test_reply_wrapped_in_prose_is_parsed(fake_llm):
    llm = fake_llm('Here you go: {"question":"Qual a data?","done":false} thanks')
    assert TravelAgent("key", llm=llm).reply(TRANSCRIPT, {}) == {"question": "Qual a data?", "done": False}


@pytest.mark.parametrize("reply", ['{"done": false}', '{"question": 42}', '{"question": "  "}'])
def test_missing_question_gets_default_acknowledgement(fake_llm, reply):
    response = TravelAgent("key", llm=fake_llm(reply)).reply(TRANSCRIPT, {})
    assert response["question"] == DEFAULT_ACKNOWLEDGEMENT
    assert response["done"] is False


def test_done_must_be_a_literal_true(fake_llm):
    response = TravelAgent("key", llm=fake_llm('{"question": "x", "done": "yes"}')).reply(TRANSCRIPT, {})
    assert response["done"] is False
    response = TravelAgent("key", llm=fake_llm('{"question": "x", "done": true}')).reply(TRANSCRIPT, {})
    assert response["done"] is True


def test_non_object_form_updates_are_dropped(fake_llm):
    response = TravelAgent("key", llm=fake_llm('{"question": "x", "formUpdates": "Rome"}')).reply(TRANSCRIPT, {})
    assert "formUpdates" not in response


def test_empty_generation(fake_llm):
    response = TravelAgent("key", llm=fake_llm("   ")).reply(TRANSCRIPT, {})
    assert response == {"question": EMPTY_RESPONSE_QUESTION, "done": False}


def test_google_api_error_is_reported(fake_llm):
    llm = fake_llm(google_exceptions.ServiceUnavailable("model overloaded"))
    response = TravelAgent("key", llm=llm).reply(TRANSCRIPT, {})
    assert response["question"].startswith("API error: 503.")
    assert "model overloaded" in response["question"]
    assert response["done"] is False
    assert "formUpdates" not in response


def test_transport_error_summary_is_truncated(fake_llm):
    llm = fake_llm(ConnectionError("x" * 500))
    response = TravelAgent("key", llm=llm).reply(TRANSCRIPT, {})
    assert response["question"] == f"API error: ConnectionError. {'x' * 200}"
    assert response["done"] is False


def test_list_content_parts_are_joined():
    class PartsModel:
        def invoke(self, messages):
            return AIMessage(content=[{"type": "text", "text": '{"question": '}, '"Which date?"}'])

    response = TravelAgent("key", llm=PartsModel()).reply(TRANSCRIPT, {})
    assert response["question"] == "Which date?"


def test_build_from_attachments_sends_text_under_import_prompt(fake_llm):
    reply = json.dumps({
        "question": "Found a flight and a hotel.",
        "formUpdates": {"destination": "Rome", "days": [{"date": "2026-03-17", "type": "flight"}]},
        "done": False,
    })
    llm = fake_llm(reply)
    response = TravelAgent("key", llm=llm, import_prompt="IMPORT").build_from_attachments(
        "--- hotel.pdf ---\nHotel Roma"
    )
    sent = llm.calls[0]
    assert sent[0].content == "IMPORT"
    assert isinstance(sent[1], HumanMessage)
    assert sent[1].content.endswith("--- hotel.pdf ---\nHotel Roma")
    assert len(sent) == 2
    assert response["question"] == "Found a flight and a hotel."
    assert response["formUpdates"]["days"][0]["type"] == "flight"


def test_build_from_attachments_degrades_on_backend_error(fake_llm):
    llm = fake_llm(google_exceptions.ServiceUnavailable("model overloaded"))
    response = TravelAgent("key", llm=llm).build_from_attachments("Hotel Roma")
    assert response["question"].startswith("API error: 503.")
    assert "formUpdates" not in response
