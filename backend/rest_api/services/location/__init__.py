"""
Live location stream of field users.
"""

from .broadcaster import LocationBroadcaster, location_broadcaster, get_location_broadcaster

__all__ = [
    "LocationBroadcaster",
    "location_broadcaster",
    "get_location_broadcaster",
]
