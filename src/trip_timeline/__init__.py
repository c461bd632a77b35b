"""Travel assistant that fills in a trip itinerary from chat turns and vouchers."""

__version__ = "0.1.0"
