"""
Chat session: owns one conversation's transcript and form, and runs the chat
graph once per user turn.
"""

import logging
from typing import Any, List, Optional, Sequence

from .agent import TravelAgent, first_question
from .form import empty_form, form_from_trip, form_to_snapshot
from .graph import compile_graph
from ..utils.extract import format_extracted
from .memory import build_attachment_turn
from .state import Attachment, ChatTurn, ItinerarySnapshot, Trip, TripForm

NO_ATTACHMENT_TEXT = "Could not extract text from the attachments. Use .txt or .pdf files."


class SessionBusyError(RuntimeError):
    """A reply is already in progress for this conversation."""


class SessionClosedError(RuntimeError):
    """The conversation already finalized its trip."""


class TripChatSession:
    """One assistant conversation, from greeting to finalized trip."""

    def __init__(self, agent: TravelAgent, trip: Optional[Trip] = None):
        self.agent = agent
        self.messages: List[ChatTurn] = [{"role": "assistant", "content": first_question()}]
        self.form: TripForm = form_from_trip(trip) if trip else empty_form()
        self.trip: Optional[Trip] = None
        self.error_message: Optional[str] = None
        self.extraction_errors: List[str] = []
        self._trip_id = trip["id"] if trip else None
        self._created_at = trip.get("createdAt") if trip else None
        self._app = compile_graph(agent)
        self._busy = False

    @property
    def is_done(self) -> bool:
        return self.trip is not None

    @property
    def snapshot(self) -> ItinerarySnapshot:
        return form_to_snapshot(self.form)

    @property
    def last_question(self) -> str:
        return self.messages[-1]["content"]

    def send(self, text: str) -> str:
        """Sends a user message and returns the assistant's next question."""
        text = (text or "").strip()
        if not text:
            raise ValueError("Message is empty.")
        return self._run({"role": "user", "content": text})

    def send_attachments(self, attachments: Sequence[Attachment], extractor: Any) -> str:
        """Extracts the attachments' text and hands it to the assistant."""
        self._check_open()
        results = extractor.extract_all(attachments)
        self.extraction_errors = [f"{r.name}: {r.error}" for r in results if not r.ok]
        for error in self.extraction_errors:
            logging.warning(f"Attachment extraction failed - {error}")

        text = format_extracted(results)
        if not text:
            details = "; ".join(self.extraction_errors)
            message = f"{NO_ATTACHMENT_TEXT} ({details})" if details else NO_ATTACHMENT_TEXT
            self.messages.append({"role": "assistant", "content": message})
            return message
        return self._run(build_attachment_turn(text))

    def _check_open(self) -> None:
        if self.is_done:
            raise SessionClosedError("This conversation already finalized its trip.")
        if self._busy:
            raise SessionBusyError("A reply is already in progress.")

    def _run(self, user_turn: ChatTurn) -> str:
        self._check_open()
        if self._app is None:
            self.messages += [user_turn, {"role": "assistant",
                                          "content": "Sorry, the assistant is currently unavailable."}]
            return self.last_question

        self._busy = True
        try:
            graph_output_state = self._app.invoke({
                "messages": self.messages + [user_turn],
                "form": self.form,
                "pending_updates": None,
                "done": False,
                "trip": None,
                "trip_id": self._trip_id,
                "created_at": self._created_at,
                "error_message": None,
            })
        except Exception as graph_run_error:
            logging.error(f"Assistant turn failed: {graph_run_error}", exc_info=True)
            self.messages += [user_turn, {
                "role": "assistant",
                "content": f"Error calling the assistant: {graph_run_error}",
            }]
            self.error_message = str(graph_run_error)
            return self.last_question
        finally:
            self._busy = False

        self.messages = list(graph_output_state.get("messages", self.messages + [user_turn]))
        self.form = graph_output_state.get("form", self.form)
        self.trip = graph_output_state.get("trip")
        self.error_message = graph_output_state.get("error_message")
        return self.last_question
