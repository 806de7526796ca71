"""
Samsara webhook payloads.

Samsara keys devices by vehicle id and may batch several HOS logs into one
delivery under ``logs`` / ``hosLogs``.
"""
from ..models import PROVIDER_SAMSARA
from .base import BaseNormalizer, KIND_LOG, KIND_LOCATION, KIND_VIOLATION


class SamsaraNormalizer(BaseNormalizer):
    provider = PROVIDER_SAMSARA

    event_type_keys = ('eventType', 'type', 'name')
    event_kinds = {
        'hos_logs': KIND_LOG,
        'hosLogs': KIND_LOG,
        'gps_location': KIND_LOCATION,
        'gpsLocation': KIND_LOCATION,
        'hos_violation': KIND_VIOLATION,
        'hosViolation': KIND_VIOLATION,
    }
    device_id_keys = ('vehicle.id', 'vehicle_id', 'vehicleId')
    log_list_keys = ('logs', 'hosLogs')
    location_root_keys = ('location', 'gpsLocation')

    log_fields = {
        'external_id': ('id', 'logId'),
        'driver_id': ('driver.id', 'driverId'),
        'log_type': ('dutyStatus', 'status', 'hosStatusType'),
        'start_time': ('startTime', 'start_time', 'startMs'),
        'end_time': ('endTime', 'end_time', 'endMs'),
        'duration_minutes': ('durationMinutes', 'duration_minutes'),
        'odometer_start': ('startOdometer', 'odometer_start'),
        'odometer_end': ('endOdometer', 'odometer_end'),
        'location_start': ('startLocation',),
        'location_end': ('endLocation',),
        'location_address': ('location', 'locationName'),
        'certified': ('certified',),
    }
    location_fields = {
        'external_id': ('id',),
        'driver_id': ('driver.id', 'driverId'),
        'latitude': ('latitude', 'lat'),
        'longitude': ('longitude', 'lng'),
        'speed': ('speed', 'speedMilesPerHour'),
        'heading': ('heading', 'bearing'),
        'odometer': ('odometer',),
        'address': ('address', 'reverseGeo.formattedLocation'),
        'engine_status': ('engineState', 'engine_status'),
        'timestamp': ('timestamp', 'time'),
    }
    event_fields = {
        'external_id': ('id', 'violationId'),
        'driver_id': ('driver.id', 'driverId'),
        'title': ('violationType', 'violation_type'),
        'description': ('description', 'message'),
        'severity': ('severity',),
        'event_time': ('timestamp', 'time'),
        'location': ('location',),
    }
