"""
Geotab webhook payloads. The record sits under ``entity`` and the device id
under ``entity.device.id``; duty statuses may arrive as short codes.
"""
from ..models import PROVIDER_GEOTAB
from .base import BaseNormalizer, KIND_LOG, KIND_LOCATION, KIND_VIOLATION


class GeotabNormalizer(BaseNormalizer):
    provider = PROVIDER_GEOTAB

    event_type_keys = ('entityType', 'type')
    event_kinds = {
        'LogRecord': KIND_LOG,
        'hos_log': KIND_LOG,
        'StatusData': KIND_LOCATION,
        'gps_location': KIND_LOCATION,
        'ExceptionEvent': KIND_VIOLATION,
        'hos_violation': KIND_VIOLATION,
    }
    device_id_keys = ('entity.device.id', 'deviceId')
    record_root = 'entity'

    log_fields = {
        'external_id': ('id',),
        'driver_id': ('driver.id', 'driverId'),
        'log_type': ('dutyStatus', 'status'),
        'start_time': ('dateTime', 'startTime'),
        'end_time': ('endDateTime', 'endTime'),
        'duration_minutes': ('durationMinutes',),
        'odometer_start': ('startOdometer', 'odometerStart'),
        'odometer_end': ('endOdometer', 'odometerEnd'),
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
        'speed': ('speed',),
        'heading': ('heading', 'bearing'),
        'odometer': ('odometer',),
        'address': ('address',),
        'timestamp': ('dateTime', 'timestamp'),
    }
    event_fields = {
        'external_id': ('id',),
        'driver_id': ('driver.id', 'driverId'),
        'title': ('exceptionType', 'violation_type', 'rule.name'),
        'description': ('description', 'message'),
        'severity': ('severity',),
        'event_time': ('dateTime', 'activeFrom', 'timestamp'),
        'location': ('location',),
    }
