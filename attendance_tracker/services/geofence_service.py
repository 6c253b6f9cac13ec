"""Geofence verification service."""
import math
from dataclasses import dataclass
from typing import Dict, Optional

from attendance_tracker.utils.errors import ValidationError

EARTH_RADIUS_METERS = 6371000
MIN_RADIUS_METERS = 1
MAX_RADIUS_METERS = 1000

# Named campus locations usable instead of explicit coordinates.
LOCATION_PRESETS = {
    'classroom_block_n': {'latitude': 17.4065, 'longitude': 78.4772, 'radius': 50},
    'classroom_block_s': {'latitude': 17.4060, 'longitude': 78.4775, 'radius': 50},
    'lab_block': {'latitude': 17.4070, 'longitude': 78.4770, 'radius': 30},
    'library': {'latitude': 17.4063, 'longitude': 78.4773, 'radius': 40},
    'auditorium': {'latitude': 17.4067, 'longitude': 78.4774, 'radius': 60},
}


@dataclass(frozen=True)
class Geofence:
    """Circular classroom area."""
    latitude: float
    longitude: float
    radius: float


class GeofenceService:
    """Service for GPS and location verification."""

    @staticmethod
    def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate distance between two GPS points in meters."""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)

        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) ** 2)
        # floating point drift can push a just outside [0, 1]
        a = min(1.0, max(0.0, a))
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_METERS * c

    @staticmethod
    def is_within(user_lat: float, user_lon: float,
                  center_lat: float, center_lon: float, radius: float) -> bool:
        """Boundary-inclusive containment check."""
        distance = GeofenceService.calculate_distance(user_lat, user_lon, center_lat, center_lon)
        return distance <= radius

    @staticmethod
    def verify_location(user_lat: float, user_lon: float, geofence: Geofence) -> Dict:
        """Verify if user is within the geofence, with the measured distance."""
        distance = GeofenceService.calculate_distance(
            user_lat, user_lon,
            geofence.latitude, geofence.longitude
        )

        return {
            'is_inside': distance <= geofence.radius,
            'distance': distance,
            'radius': geofence.radius
        }

    @staticmethod
    def classify_accuracy(accuracy: Optional[float]) -> Optional[str]:
        """Map a reported GPS accuracy (meters) to a display label."""
        if accuracy is None:
            return None
        if accuracy <= 5:
            return 'excellent'
        if accuracy <= 10:
            return 'good'
        if accuracy <= 20:
            return 'fair'
        if accuracy <= 50:
            return 'poor'
        return 'very_poor'

    @staticmethod
    def is_valid_coordinates(lat, lon) -> bool:
        for value in (lat, lon):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
            if math.isnan(value):
                return False
        return -90 <= lat <= 90 and -180 <= lon <= 180

    @staticmethod
    def validate_geofence(config: Optional[Dict], default_radius: Optional[float] = None) -> Geofence:
        """Validate a geofence configuration dict and return it typed.

        A missing radius falls back to ``default_radius`` when one is given.
        """
        if not config or not isinstance(config, dict):
            raise ValidationError('Geofence configuration is required')

        latitude = config.get('latitude')
        longitude = config.get('longitude')
        radius = config.get('radius')
        if radius is None:
            radius = default_radius

        if not GeofenceService.is_valid_coordinates(latitude, longitude):
            raise ValidationError('Invalid geofence coordinates')

        if (isinstance(radius, bool) or not isinstance(radius, (int, float))
                or not MIN_RADIUS_METERS <= radius <= MAX_RADIUS_METERS):
            raise ValidationError(
                f'Radius must be between {MIN_RADIUS_METERS} and {MAX_RADIUS_METERS} meters'
            )

        return Geofence(latitude=float(latitude), longitude=float(longitude), radius=float(radius))

    @staticmethod
    def get_location_geofence(location_name: str) -> Optional[Geofence]:
        """Look up a named campus location."""
        preset = LOCATION_PRESETS.get(location_name)
        if preset is None:
            return None
        return Geofence(**preset)
