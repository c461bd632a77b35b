"""
Travel agent: turns the chat transcript into the next question and an itinerary patch.
"""

import logging
from typing import Any, Dict, Optional, Sequence
from google.api_core import exceptions as google_exceptions
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, BaseMessage

from ..config.settings import GEMINI_MODEL_CONFIG, IMPORT_PROMPT, SYSTEM_PROMPT
from .memory import build_attachment_turn, get_attachment_memory
from .parsing import parse_agent_response
from .state import AgentResponse, ChatTurn, ItinerarySnapshot

MISSING_KEY_QUESTION = (
    "The assistant is not configured. Set GEMINI_API_KEY in your environment (see README)."
)
EMPTY_RESPONSE_QUESTION = "The assistant returned an empty response."
DEFAULT_ACKNOWLEDGEMENT = "Record updated."
FIRST_QUESTION = "Hi! I'm your travel assistant. Where are you going? (e.g. Rome, Paris, Lisbon)"

MEMORY_HEADER = (
    "--- MEMORY: ATTACHMENT CONTENT (source of truth; extract everything from here and do NOT "
    "ask again for hotels, activities, flights, airports or dates that already appear below) ---"
)

ERROR_DETAIL_CHARS = 200


def first_question() -> str:
    """Greeting that opens every conversation."""
    return FIRST_QUESTION


def build_snapshot_context(snapshot: Optional[ItinerarySnapshot]) -> str:
    """Compact summary of what the record already holds."""
    snapshot = snapshot or {}
    parts = []
    if snapshot.get("destination"):
        parts.append(f"Destination: {snapshot['destination']}")
    if snapshot.get("startDate"):
        parts.append(f"Start: {snapshot['startDate']}")
    if snapshot.get("endDate"):
        parts.append(f"End: {snapshot['endDate']}")
    days = snapshot.get("days") or []
    if days:
        described = []
        for day in days:
            title = f" - {day['title']}" if day.get("title") else ""
            described.append(f"{day.get('date', '')} {day.get('type', '')}{title}")
        parts.append(f"Registered days ({len(days)}): {'; '.join(described)}")
    return f"Current record: {'. '.join(parts)}" if parts else "Blank record."


def _to_messages(system_content: str, messages: Sequence[ChatTurn]) -> list:
    converted: list = [SystemMessage(content=system_content)]
    for turn in messages:
        if turn.get("role") == "assistant":
            converted.append(AIMessage(content=turn.get("content", "")))
        else:
            converted.append(HumanMessage(content=turn.get("content", "")))
    return converted


def _content_text(message: BaseMessage) -> str:
    """Plain text of a model reply; Gemini may return a list of parts."""
    content = message.content
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks = []
        for item in content:
            if isinstance(item, str):
                chunks.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                chunks.append(item["text"])
        return "".join(chunks)
    return ""


def coerce_response(parsed: Dict[str, Any]) -> AgentResponse:
    """Shapes a decoded reply object into an AgentResponse the caller can trust."""
    question = parsed.get("question")
    if not isinstance(question, str) or not question.strip():
        question = DEFAULT_ACKNOWLEDGEMENT
    response: AgentResponse = {"question": question, "done": parsed.get("done") is True}
    updates = parsed.get("formUpdates")
    if isinstance(updates, dict):
        response["formUpdates"] = updates
    elif updates is not None:
        logging.warning(f"Ignoring formUpdates of unexpected type: {type(updates)}")
    return response


class TravelAgent:
    """Stateless reconciler between the chat transcript and the itinerary snapshot."""

    def __init__(self, api_key: Optional[str], model_config: Optional[Dict[str, Any]] = None,
                 llm: Any = None, system_prompt: str = SYSTEM_PROMPT,
                 import_prompt: str = IMPORT_PROMPT):
        """
        Initialize the agent with an explicit API key.

        ``llm`` replaces the Gemini chat model (anything with ``invoke(messages)``).
        It is only used when a key is configured.
        """
        self.api_key = api_key.strip() if isinstance(api_key, str) else None
        self.model_config = model_config or GEMINI_MODEL_CONFIG
        self.system_prompt = system_prompt
        self.import_prompt = import_prompt
        self._llm = llm

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_llm(self) -> Any:
        if self._llm is None:
            self._llm = ChatGoogleGenerativeAI(google_api_key=self.api_key, **self.model_config)
            logging.info("ChatGoogleGenerativeAI model initialized successfully.")
        return self._llm

    def build_system_content(self, messages: Sequence[ChatTurn],
                             snapshot: Optional[ItinerarySnapshot]) -> str:
        system_content = f"{self.system_prompt}\n\n{build_snapshot_context(snapshot)}"
        attachment_memory = get_attachment_memory(messages)
        if attachment_memory:
            system_content += f"\n\n{MEMORY_HEADER}\n\n{attachment_memory}"
        return system_content

    def reply(self, messages: Sequence[ChatTurn],
              snapshot: Optional[ItinerarySnapshot] = None) -> AgentResponse:
        """Returns the next question, an optional patch and the completion flag."""
        if not self.configured:
            logging.error("Gemini API Key is missing. Skipping assistant call.")
            return {"question": MISSING_KEY_QUESTION, "done": False}
        return self._complete(self.build_system_content(messages, snapshot), messages)

    def build_from_attachments(self, attachment_text: str) -> AgentResponse:
        """
        One-shot import: asks for the whole itinerary described by the attachments.

        The itinerary comes back in ``formUpdates``; ``question`` carries the
        assistant's summary or the degradation message.
        """
        if not self.configured:
            logging.error("Gemini API Key is missing. Skipping attachment import.")
            return {"question": MISSING_KEY_QUESTION, "done": False}
        return self._complete(self.import_prompt, [build_attachment_turn(attachment_text)])

    def _complete(self, system_content: str, messages: Sequence[ChatTurn]) -> AgentResponse:
        logging.info(f"Assistant received {len(messages)} messages.")

        try:
            ai_response = self._get_llm().invoke(_to_messages(system_content, messages))
        except google_exceptions.GoogleAPIError as e:
            logging.error(f"Gemini API call failed: {e}")
            code = getattr(e, "code", None) or type(e).__name__
            return {"question": f"API error: {code}. {str(e)[:ERROR_DETAIL_CHARS]}", "done": False}
        except Exception as e:
            logging.error(f"LLM invocation failed: {e}", exc_info=True)
            return {
                "question": f"API error: {type(e).__name__}. {str(e)[:ERROR_DETAIL_CHARS]}",
                "done": False,
            }

        content = _content_text(ai_response).strip()
        if not content:
            logging.warning("Assistant returned an empty response.")
            return {"question": EMPTY_RESPONSE_QUESTION, "done": False}
        logging.info(f"LLM Response content snippet: {content[:200]}...")

        parsed = parse_agent_response(content)
        if parsed is None:
            return {"question": content, "done": False}
        return coerce_response(parsed)
