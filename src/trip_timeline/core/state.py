"""State definitions for the trip timeline assistant."""

from typing import TypedDict, Annotated, Sequence, Optional, Dict, Any, List
import operator

DAY_TYPES = ("flight", "hotel", "activity", "logistics")

DEFAULT_DAY_TYPE = "activity"

# Detail keys understood for each day type
DETAIL_KEYS: Dict[str, tuple] = {
    "flight": ("airline", "flightNumber", "terminalGate", "departure", "arrival",
               "departureDate", "arrivalDate"),
    "hotel": ("hotelName", "checkIn", "checkOut", "reservationCode"),
    "activity": ("activityCategory", "ticketInfo"),
    "logistics": ("transportMode", "origin", "destination"),
}

DAY_TYPE_LABELS = {
    "flight": "Flight",
    "hotel": "Hotel",
    "activity": "Activity",
    "logistics": "Logistics",
}


class ChatTurn(TypedDict):
    role: str  # "user" | "assistant"
    content: str


class ActivityPatch(TypedDict, total=False):
    title: str
    time: str
    location: str


class DayPatch(TypedDict, total=False):
    """A partial day, used both as a patch and inside a snapshot."""
    date: str
    type: str
    title: str
    time: str
    location: str
    notes: str
    details: Dict[str, str]
    activities: List[ActivityPatch]
    checklistItems: List[str]


class ItinerarySnapshot(TypedDict, total=False):
    """Structured trip record; every field optional so it doubles as a patch."""
    destination: str
    startDate: str
    endDate: str
    days: List[DayPatch]


class AgentResponse(TypedDict, total=False):
    question: str
    formUpdates: ItinerarySnapshot
    done: bool


class Attachment(TypedDict, total=False):
    name: str
    uri: str
    mimeType: str


class FormActivity(TypedDict):
    id: str
    title: str
    time: str
    location: str


class FormDay(TypedDict):
    id: str
    date: str
    type: str
    title: str
    time: str
    location: str
    notes: str
    details: Dict[str, str]
    activities: List[FormActivity]
    checklistText: str
    attachments: List[Attachment]


class TripForm(TypedDict):
    """Editable projection of a snapshot, as the form holds it."""
    destination: str
    startDate: str
    endDate: str
    days: List[FormDay]


class TripDay(TypedDict):
    id: str
    date: str
    type: str
    title: str
    time: str
    location: str
    notes: str
    details: Dict[str, str]
    activities: List[FormActivity]
    checklistItems: List[str]
    attachments: List[Attachment]


class Trip(TypedDict):
    id: str
    destination: str
    startDate: str
    endDate: str
    days: List[TripDay]
    createdAt: str
    updatedAt: str


class TripChatState(TypedDict, total=False):
    """State definition for one turn of the assistant chat graph."""
    # Primary driver: the conversation history
    messages: Annotated[Sequence[ChatTurn], operator.add]

    # Live form the assistant is filling in
    form: TripForm

    # Patch returned by the latest assistant reply, if any
    pending_updates: Optional[ItinerarySnapshot]

    # Set only when the assistant reports the user confirmed the record
    done: bool

    # Finalized record, once done and valid
    trip: Optional[Trip]

    # Identity of the trip being edited, if the form was seeded from one
    trip_id: Optional[str]
    created_at: Optional[str]

    # Error tracking for the current turn
    error_message: Optional[str]


def is_day_type(value: Any) -> bool:
    return isinstance(value, str) and value in DAY_TYPES
