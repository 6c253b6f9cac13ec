"""Attendance policy constants, read from the application config."""
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping


@dataclass(frozen=True)
class AttendancePolicy:
    qr_code_expiry_minutes: int = 5
    session_period_minutes: int = 50
    session_max_extension_minutes: int = 60
    late_threshold_minutes: int = 10
    default_geofence_radius: float = 50
    require_scan_location: bool = False

    @property
    def late_threshold(self) -> timedelta:
        return timedelta(minutes=self.late_threshold_minutes)

    @classmethod
    def from_config(cls, config: Mapping) -> 'AttendancePolicy':
        return cls(
            qr_code_expiry_minutes=config.get('QR_CODE_EXPIRY_MINUTES', cls.qr_code_expiry_minutes),
            session_period_minutes=config.get('SESSION_PERIOD_MINUTES', cls.session_period_minutes),
            session_max_extension_minutes=config.get(
                'SESSION_MAX_EXTENSION_MINUTES', cls.session_max_extension_minutes
            ),
            late_threshold_minutes=config.get('LATE_THRESHOLD_MINUTES', cls.late_threshold_minutes),
            default_geofence_radius=config.get('DEFAULT_GEOFENCE_RADIUS', cls.default_geofence_radius),
            require_scan_location=config.get('REQUIRE_SCAN_LOCATION', cls.require_scan_location),
        )
