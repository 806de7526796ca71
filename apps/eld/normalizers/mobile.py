"""
First-party mobile app batches.

Unlike the hardware webhooks the record kind comes from the endpoint, and
every item may carry a client record id so resent batches upsert.
"""
from ..models import PROVIDER_MOBILE
from ..statuses import normalize_event_type, normalize_severity
from .base import BaseNormalizer, coerce_timestamp, to_point

CLIENT_ID_KEYS = ('id', 'client_id', 'local_id')


class MobileNormalizer(BaseNormalizer):
    provider = PROVIDER_MOBILE

    default_event_severity = 'warning'

    log_fields = {
        'external_id': CLIENT_ID_KEYS,
        'driver_id': ('driver_id',),
        'log_type': ('log_type', 'status'),
        'start_time': ('start_time', 'startTime'),
        'end_time': ('end_time', 'endTime'),
        'duration_minutes': ('duration_minutes', 'durationMinutes'),
        'odometer_start': ('odometer_start', 'odometerStart'),
        'odometer_end': ('odometer_end', 'odometerEnd'),
        'location_start': ('location_start', 'startLocation'),
        'location_end': ('location_end', 'endLocation'),
        'location_address': ('location_address', 'address'),
        'certified': ('certified',),
    }
    location_fields = {
        'external_id': CLIENT_ID_KEYS,
        'driver_id': ('driver_id',),
        'latitude': ('latitude', 'lat'),
        'longitude': ('longitude', 'lng'),
        'speed': ('speed',),
        'heading': ('heading',),
        'odometer': ('odometer',),
        'address': ('address',),
        'engine_status': ('engine_status',),
        'timestamp': ('timestamp', 'time'),
    }
    event_fields = {
        'external_id': CLIENT_ID_KEYS,
        'driver_id': ('driver_id',),
        'event_type': ('event_type', 'type'),
        'title': ('title', 'name'),
        'description': ('description', 'message'),
        'severity': ('severity',),
        'event_time': ('event_time', 'timestamp'),
        'location': ('location',),
        'metadata': ('metadata', 'additional_data'),
    }

    def build_log(self, item):
        record = super().build_log(item)
        raw_data = item.get('raw_data')
        if raw_data is not None:
            record['raw_data'] = raw_data
        return record

    def build_event(self, item):
        f = self.event_fields
        event_type, original_type = normalize_event_type(self.field(item, f, 'event_type'))
        metadata = self.field(item, f, 'metadata')
        metadata = dict(metadata) if isinstance(metadata, dict) else {}
        if original_type is not None:
            metadata['original_event_type'] = original_type
        return {
            'external_id': self.field(item, f, 'external_id'),
            'provider_driver_id': self.field(item, f, 'driver_id'),
            'event_type': event_type,
            'severity': normalize_severity(
                self.field(item, f, 'severity'), self.default_event_severity
            ),
            'title': self.field(item, f, 'title'),
            'description': self.field(item, f, 'description'),
            'event_time': coerce_timestamp(self.field(item, f, 'event_time')),
            'location': to_point(self.field(item, f, 'location')),
            'metadata': metadata,
        }
