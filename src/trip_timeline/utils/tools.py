"""
External API helpers that enrich timeline days with weather and nearby places.
"""

import logging
import math
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
import requests
import googlemaps

from ..config.settings import OWM_ONECALL_ENDPOINT
from .dates import normalize_date_only

NEARBY_RADIUS_METERS = 3000
MAX_NEARBY_PLACES = 10

# Google place types mapped to the categories the timeline shows
PLACE_CATEGORIES = (
    ("restaurant", "Restaurant"),
    ("pharmacy", "Pharmacy"),
    ("supermarket", "Market"),
    ("grocery_or_supermarket", "Market"),
)
DEFAULT_PLACE_CATEGORY = "Sight"


def resolve_category(types: Optional[List[str]]) -> str:
    types = types or []
    for place_type, category in PLACE_CATEGORIES:
        if place_type in types:
            return category
    return DEFAULT_PLACE_CATEGORY


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    radius = 6371.0
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class DayContextService:
    """Weather and points of interest around a timeline day."""

    def __init__(self, maps_api_key: Optional[str], weather_api_key: Optional[str],
                 gmaps_client: Any = None, timeout: float = 10):
        self.weather_api_key = weather_api_key
        self.timeout = timeout
        self.gmaps = gmaps_client
        if self.gmaps is None and maps_api_key:
            try:
                self.gmaps = googlemaps.Client(key=maps_api_key)
                logging.info("Google Maps client initialized successfully.")
            except ValueError as e:
                logging.error(f"Failed to initialize Google Maps client: {e}")
                self.gmaps = None

    @property
    def maps_active(self) -> bool:
        return self.gmaps is not None

    def geocode(self, address: str, fallback_city: Optional[str] = None) -> Optional[Dict[str, float]]:
        """Tries the address first, then the fallback city."""
        if not self.maps_active:
            logging.error("Google Maps client not active. Cannot geocode.")
            return None
        for query in [q for q in (address, fallback_city) if q]:
            try:
                geocode_result = self.gmaps.geocode(query)
            except googlemaps.exceptions.ApiError as e:
                logging.error(f"Google Geocoding API error: {e}")
                continue
            except (googlemaps.exceptions.TransportError, googlemaps.exceptions.Timeout) as e:
                logging.error(f"Error during geocoding: {e}")
                continue
            if not geocode_result:
                logging.warning(f"Geocoding failed for location: {query}")
                continue
            location = geocode_result[0].get('geometry', {}).get('location', {})
            lat, lon = location.get('lat'), location.get('lng')
            if lat is not None and lon is not None:
                logging.info(f"Geocoded '{query}' to Lat: {lat}, Lon: {lon}")
                return {"lat": lat, "lon": lon}
        return None

    def get_weather_forecast(self, lat: float, lon: float, date: str) -> Dict[str, Any]:
        """Daily forecast for ``date`` (YYYY-MM-DD) from the OpenWeatherMap One Call API."""
        logging.info(f"get_weather_forecast(lat={lat}, lon={lon}, date='{date}')")
        if not self.weather_api_key:
            return {"error": "Weather API key not configured."}

        try:
            target_date = datetime.strptime(normalize_date_only(date), "%Y-%m-%d").date()
        except ValueError:
            return {"error": "Invalid date format. Please use YYYY-MM-DD."}

        params = {
            'lat': lat,
            'lon': lon,
            'appid': self.weather_api_key,
            'units': 'metric',
            'exclude': 'current,minutely,hourly,alerts'
        }
        try:
            response = requests.get(OWM_ONECALL_ENDPOINT, params=params, timeout=self.timeout)
            response.raise_for_status()
            weather_data = response.json()
        except requests.exceptions.Timeout:
            logging.error("OWM API request timed out.")
            return {"error": "Weather service request timed out."}
        except requests.exceptions.RequestException as e:
            logging.error(f"OWM API request failed: {e}")
            return {"error": f"Failed to fetch weather data: {e}"}
        except ValueError:
            logging.error("Failed to parse OWM API response as JSON.")
            return {"error": "Received invalid response from weather service."}

        for day_forecast in weather_data.get('daily', []):
            dt_timestamp = day_forecast.get('dt')
            if not dt_timestamp:
                continue
            if datetime.fromtimestamp(dt_timestamp, tz=timezone.utc).date() != target_date:
                continue
            temp_info = day_forecast.get('temp', {})
            weather_info = (day_forecast.get('weather') or [{}])[0]
            return {
                "date": target_date.isoformat(),
                "temp_high_c": temp_info.get('max'),
                "temp_low_c": temp_info.get('min'),
                "conditions_main": weather_info.get('main', 'N/A'),
                "conditions_desc": weather_info.get('description', 'N/A'),
                "wind_speed": day_forecast.get('wind_speed'),
                "precip_prob_percent": round(day_forecast.get('pop', 0) * 100, 1),
            }

        logging.warning(f"Forecast for {date} not found in the returned data.")
        return {"error": f"Forecast for date {date} not available (max 8 days typical)."}

    def find_places_nearby(self, lat: float, lon: float) -> List[Dict[str, Any]]:
        """Closest named places around a point, nearest first."""
        if not self.maps_active:
            return [{"error": "Maps service not available."}]
        try:
            places_result = self.gmaps.places_nearby(location=(lat, lon), radius=NEARBY_RADIUS_METERS)
        except googlemaps.exceptions.ApiError as e:
            logging.error(f"Google Places API error: {e}")
            return [{"error": f"Maps API error: {e}"}]
        except (googlemaps.exceptions.TransportError, googlemaps.exceptions.Timeout) as e:
            logging.error(f"Error finding places: {e}")
            return [{"error": f"Error finding places: {e}"}]

        if places_result.get('status') not in ('OK', 'ZERO_RESULTS'):
            return [{"error": f"Places API error: {places_result.get('status')}"}]

        places = []
        for place in places_result.get('results', []):
            if not place.get('name'):
                continue
            location = place.get('geometry', {}).get('location', {})
            places.append({
                "name": place['name'],
                "category": resolve_category(place.get('types')),
                "distance_km": round(distance_km(lat, lon, location.get('lat', lat), location.get('lng', lon)), 2),
            })
        places.sort(key=lambda p: p["distance_km"])
        return places[:MAX_NEARBY_PLACES]

    def enrich_day(self, day: Dict[str, Any], destination: Optional[str] = None) -> Dict[str, Any]:
        """Weather and nearby places for one day; errors are reported, never raised."""
        coords = self.geocode(day.get("location") or "", destination)
        if coords is None:
            return {"error": "Could not locate this day."}
        return {
            "coordinates": coords,
            "weather": self.get_weather_forecast(coords["lat"], coords["lon"], day.get("date", "")),
            "places": self.find_places_nearby(coords["lat"], coords["lon"]),
        }
