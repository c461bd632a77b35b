"""
Core chat reconciliation for the trip timeline assistant.
"""

from .agent import TravelAgent, build_snapshot_context, first_question
from .form import (
    IncompleteTripError,
    apply_agent_updates,
    build_trip_from_snapshot,
    empty_form,
    finalize_trip,
    form_from_trip,
    form_to_snapshot,
)
from .memory import get_attachment_memory, build_attachment_turn
from .parsing import find_json_object, parse_agent_response
from .session import TripChatSession, SessionBusyError, SessionClosedError

__all__ = [
    'TravelAgent',
    'build_snapshot_context',
    'first_question',
    'IncompleteTripError',
    'apply_agent_updates',
    'build_trip_from_snapshot',
    'empty_form',
    'finalize_trip',
    'form_from_trip',
    'form_to_snapshot',
    'get_attachment_memory',
    'build_attachment_turn',
    'find_json_object',
    'parse_agent_response',
    'TripChatSession',
    'SessionBusyError',
    'SessionClosedError',
]
