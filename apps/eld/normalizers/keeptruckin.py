"""
KeepTruckin (Motive) webhook payloads. Flat snake_case records.
"""
from ..models import PROVIDER_KEEPTRUCKIN
from .base import BaseNormalizer, KIND_LOG, KIND_LOCATION, KIND_VIOLATION


class KeepTruckinNormalizer(BaseNormalizer):
    provider = PROVIDER_KEEPTRUCKIN

    event_type_keys = ('event_type', 'type')
    event_kinds = {
        'log_updated': KIND_LOG,
        'hos_log': KIND_LOG,
        'location_updated': KIND_LOCATION,
        'gps_location': KIND_LOCATION,
        'violation_detected': KIND_VIOLATION,
        'hos_violation': KIND_VIOLATION,
    }
    device_id_keys = ('device_id', 'device_serial')

    log_fields = {
        'external_id': ('id', 'log_id'),
        'driver_id': ('driver_id', 'driver.id'),
        'log_type': ('status', 'duty_status'),
        'start_time': ('start_time', 'start'),
        'end_time': ('end_time', 'end'),
        'duration_minutes': ('duration_minutes',),
        'odometer_start': ('odometer_start', 'odometer_reading_start'),
        'odometer_end': ('odometer_end', 'odometer_reading_end'),
        'location_start': ('location_start',),
        'location_end': ('location_end',),
        'location_address': ('location', 'location_name'),
        'certified': ('certified',),
    }
    location_fields = {
        'external_id': ('id', 'location_id'),
        'driver_id': ('driver_id', 'driver.id'),
        'latitude': ('latitude', 'lat'),
        'longitude': ('longitude', 'lng'),
        'speed': ('speed',),
        'heading': ('heading', 'bearing'),
        'odometer': ('odometer',),
        'address': ('address', 'location_name'),
        'engine_status': ('engine_status',),
        'timestamp': ('timestamp', 'time'),
    }
    event_fields = {
        'external_id': ('id', 'violation_id'),
        'driver_id': ('driver_id', 'driver.id'),
        'title': ('violation_type',),
        'description': ('description', 'message'),
        'severity': ('severity',),
        'event_time': ('timestamp', 'time'),
        'location': ('location',),
    }
