"""
Main entry point for the trip timeline assistant.
"""

import argparse
import json
import logging
import os
import shlex
from typing import List, Optional

from .config.settings import (
    GEMINI_API_KEY,
    MAPS_API_KEY,
    PDF_EXTRACT_API_URL,
    WEATHER_API_KEY,
    validate_api_keys,
)
from .core.agent import TravelAgent
from .core.form import IncompleteTripError, build_trip_from_snapshot
from .core.session import NO_ATTACHMENT_TEXT, TripChatSession
from .utils.extract import AttachmentExtractor, format_extracted
from .utils.tools import DayContextService


def _attachments_from_paths(paths: List[str]) -> List[dict]:
    return [{"name": os.path.basename(path), "uri": os.path.abspath(path)} for path in paths]


def display_timeline(trip: dict, service: DayContextService) -> None:
    """Prints each day of a saved trip with its weather and nearby places."""
    print(f"\n--- {trip.get('destination', 'Trip')} ({trip.get('startDate', '')} -> {trip.get('endDate', '')}) ---")
    for day in trip.get("days", []):
        print(f"\n** {day.get('date', 'Unknown Date')} - {day.get('title', '')} **")
        context = service.enrich_day(day, trip.get("destination"))
        if context.get("error"):
            print(f"   {context['error']}")
            continue
        weather = context["weather"]
        if weather.get("error"):
            print(f"   Weather: {weather['error']}")
        else:
            print(f"   Weather: {weather['conditions_desc']}, "
                  f"{weather['temp_low_c']}-{weather['temp_high_c']} C, wind {weather['wind_speed']}")
        for place in context["places"]:
            if place.get("error"):
                print(f"   Places: {place['error']}")
                break
            print(f"   - {place['name']} ({place['category']}, {place['distance_km']} km)")


def run_chat(output: Optional[str]) -> None:
    print("--- Welcome to the trip timeline assistant! ---")
    print("Answer the questions and your itinerary will be filled in.")
    print("Commands: '/attach <file> ...' sends vouchers, '/form' shows the record, 'exit' or 'quit' leaves.")

    if not validate_api_keys():
        print("\nWarning: GEMINI_API_KEY is not set; the assistant will only explain how to configure it.")

    session = TripChatSession(TravelAgent(GEMINI_API_KEY))
    extractor = AttachmentExtractor(PDF_EXTRACT_API_URL)
    print(f"\nAssistant: {session.last_question}")

    while not session.is_done:
        try:
            user_input = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            return
        if not user_input:
            continue
        if user_input.lower() in ["exit", "quit"]:
            print("Trip discarded. Safe travels!")
            return
        if user_input == "/form":
            print(json.dumps(session.snapshot, indent=2, ensure_ascii=False))
            continue

        print("Thinking...")
        if user_input.startswith("/attach"):
            paths = shlex.split(user_input)[1:]
            if not paths:
                print("Usage: /attach <file> [<file> ...]")
                continue
            question = session.send_attachments(_attachments_from_paths(paths), extractor)
            for error in session.extraction_errors:
                print(f"  (could not read {error})")
        else:
            question = session.send(user_input)
        print(f"\nAssistant: {question}")

    print("\n--- Trip finalized ---")
    _write_trip(session.trip, output)


def run_import(paths: List[str], output: Optional[str]) -> None:
    """Builds a whole trip from attachments in one assistant call."""
    if not validate_api_keys():
        print("\nWarning: GEMINI_API_KEY is not set; the import cannot run.")

    extractor = AttachmentExtractor(PDF_EXTRACT_API_URL)
    results = extractor.extract_all(_attachments_from_paths(paths))
    for result in results:
        if not result.ok:
            print(f"  (could not read {result.name}: {result.error})")
    text = format_extracted(results)
    if not text:
        print(NO_ATTACHMENT_TEXT)
        return

    print("Building the itinerary from the attachments...")
    response = TravelAgent(GEMINI_API_KEY).build_from_attachments(text)
    print(f"\nAssistant: {response['question']}")
    try:
        trip = build_trip_from_snapshot(response.get("formUpdates") or {})
    except IncompleteTripError as e:
        logging.warning(f"Attachment import incomplete: {e}")
        print(f"Could not build the trip. {e}")
        return

    print("\n--- Trip built from attachments ---")
    _write_trip(trip, output)


def _write_trip(trip: dict, output: Optional[str]) -> None:
    trip_json = json.dumps(trip, indent=2, ensure_ascii=False)
    print(trip_json)
    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(trip_json)
        logging.info(f"Trip written to {output}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the trip timeline assistant."""
    parser = argparse.ArgumentParser(prog="trip-timeline", description="Chat-based trip itinerary assistant.")
    parser.add_argument("--output", "-o", help="write the finalized trip as JSON to this file")
    parser.add_argument("--timeline", metavar="TRIP_JSON",
                        help="show weather and nearby places for each day of a saved trip")
    parser.add_argument("--import", dest="import_files", nargs="+", metavar="FILE",
                        help="build a trip from .txt/.pdf vouchers in one step, without chatting")
    args = parser.parse_args(argv)

    if args.timeline:
        with open(args.timeline, "r", encoding="utf-8") as fh:
            trip = json.load(fh)
        display_timeline(trip, DayContextService(MAPS_API_KEY, WEATHER_API_KEY))
        return

    if args.import_files:
        run_import(args.import_files, args.output)
        return

    run_chat(args.output)


if __name__ == "__main__":
    main()
