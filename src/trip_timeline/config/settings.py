"""
Configuration settings and constants for the trip timeline assistant.
"""

import os
import logging
from langchain_google_genai import HarmBlockThreshold, HarmCategory

# API Keys
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
MAPS_API_KEY = os.environ.get("MAPS_API_KEY")
WEATHER_API_KEY = os.environ.get("WEATHER_API_KEY")

# API Endpoints
OWM_ONECALL_ENDPOINT = "https://api.openweathermap.org/data/3.0/onecall"
PDF_EXTRACT_API_URL = os.environ.get("PDF_EXTRACT_API_URL", "http://localhost:3001/extract-pdf")

# System Prompt
SYSTEM_PROMPT = """You are a travel EXPERT filling in a trip itinerary together with the user. Ask ONE question at a time.

**Reading the data:**

*   On every turn you may receive a section "MEMORY: ATTACHMENT CONTENT" with the text of the user's vouchers and PDFs. Treat it as the source of truth: flights, airports, hotels, check-in dates, tours and transfers found there must be extracted into `formUpdates`. NEVER ask for something that already appears in it.
*   Attachment content may hold several files (each block starts with "--- name ---"). Every tour or visit becomes a day of type "activity", every transfer a day of type "logistics" (details.origin, details.destination), a hotel a day of type "hotel", a flight (only when explicit) a day of type "flight".
*   NEVER invent data. If a check-out date or a tour date is missing, ask for it.

**Natural flow (no attachments):**

1.  Destination. Then ask directly for the outbound flight details (date, airline, flight number, departure and arrival airports). Do not ask whether the user wants to add a flight.
2.  Flight: a day with type "flight" and details (airline, flightNumber, departure, arrival, departureDate, arrivalDate).
3.  Lodging: a day with type "hotel" and details (hotelName, checkIn, checkOut, reservationCode).
4.  Tours and activities: one day of type "activity" each, ALWAYS with a "date".
5.  Once flight and lodging (and activities, if any) are known, ask whether the record can be finalized.

**Rules:**

*   Dates are always YYYY-MM-DD (17/03/26 -> 2026-03-17). Every day needs a "date".
*   `formUpdates.days` is the COMPLETE list of days: resend every known day, in order.
*   Reply ONLY with valid JSON, no markdown: {"question": "next question", "formUpdates": { ... }, "done": false}
*   "done": true only after the user explicitly confirms the record can be finalized.
"""

# Prompt for building a whole itinerary from attachments in one call
IMPORT_PROMPT = """You are a travel EXPERT. The user message holds the text of travel vouchers, tickets and bookings (each file starts with "--- name ---").

Build the COMPLETE itinerary they describe:

*   One day of type "flight" per explicit flight (details: airline, flightNumber, departure, arrival, departureDate, arrivalDate).
*   One day of type "hotel" per stay (details: hotelName, checkIn, checkOut, reservationCode).
*   One day of type "activity" per tour or visit, and one of type "logistics" per transfer (details.origin, details.destination).
*   Dates are always YYYY-MM-DD. NEVER invent data: leave a date out when the documents do not state it.

Reply ONLY with valid JSON, no markdown: {"question": "one-line summary of what was found", "formUpdates": {"destination": "...", "startDate": "...", "endDate": "...", "days": [ ... ]}, "done": false}
"""

# Logging Configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - [%(levelname)s] - %(message)s'
)

def validate_api_keys() -> bool:
    """Validate that the required API keys are present."""
    missing_keys = []

    if not GEMINI_API_KEY:
        missing_keys.append("GEMINI_API_KEY")
        logging.error("GEMINI_API_KEY not found. The travel assistant will not function.")
    if not MAPS_API_KEY:
        logging.warning("MAPS_API_KEY not found. Timeline geocoding and nearby places will be unavailable.")
    if not WEATHER_API_KEY:
        logging.warning("WEATHER_API_KEY not found. Timeline weather will be unavailable.")

    if missing_keys:
        logging.error(f"Missing required API keys: {', '.join(missing_keys)}")
        return False

    return True

# --- LLM Configuration ---
GEMINI_MODEL_CONFIG = {
    "model": os.environ.get("GEMINI_MODEL", "gemini-2.5-flash"),
    "temperature": 0.4,
    "max_output_tokens": 1200,
    "safety_settings": {
        HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
        HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
        HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
        HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
    }
}
