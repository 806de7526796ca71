"""
Provider normalizer base class.

A normalizer owns the alias tables for one upstream format and turns a
provider-native payload into canonical duty-status, location or compliance
event records. Each canonical field is read by probing an ordered list of
dotted paths and taking the first present, non-empty value.
"""
import logging
import re
from datetime import datetime, timezone as dt_timezone

from ..models import ComplianceEvent
from ..statuses import normalize_log_type, normalize_severity
from .schemas import (
    DutyStatusRecordSerializer,
    LocationRecordSerializer,
    ComplianceEventRecordSerializer,
)

logger = logging.getLogger(__name__)

KIND_LOG = 'hos_log'
KIND_LOCATION = 'location'
KIND_VIOLATION = 'violation'

_EPOCH_RE = re.compile(r'^-?\d+(\.\d+)?$')


def dig(payload, path):
    """Follow a dotted path through nested dicts; None when any hop is missing."""
    value = payload
    for part in path.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def probe(payload, paths):
    """Value of the first path that is present and non-empty."""
    for path in paths:
        value = dig(payload, path)
        if value is not None and value != '':
            return value
    return None


def coerce_timestamp(value):
    """
    Epoch seconds or milliseconds become aware UTC datetimes; strings are left
    for the schema to parse. Absent stays None.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        if not _EPOCH_RE.match(value.strip()):
            return value
        value = float(value)
    elif isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value)

    seconds = value / 1000.0 if abs(value) > 1e11 else value
    try:
        return datetime.fromtimestamp(seconds, tz=dt_timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(value)


def to_point(value):
    """Reduce a provider location object to ``{latitude, longitude}``."""
    if not isinstance(value, dict):
        return None
    latitude = probe(value, ('latitude', 'lat'))
    longitude = probe(value, ('longitude', 'lng', 'lon'))
    if latitude is None or longitude is None:
        return None
    point = {'latitude': latitude, 'longitude': longitude}
    address = probe(value, ('address', 'formattedAddress', 'name'))
    if isinstance(address, str):
        point['address'] = address
    return point


def to_minutes(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return value


def compact(data):
    """Drop absent fields so schema defaults apply."""
    return {key: value for key, value in data.items() if value is not None}


class NormalizationFailure:
    """One rejected item of a batch and why."""

    def __init__(self, index, errors):
        self.index = index
        self.errors = errors

    def to_dict(self):
        return {'index': self.index, 'errors': self.errors}


class NormalizationResult:
    """
    Records accepted from one payload plus the items that were filtered out.
    Filtered items are not an error: the accepted subset is still ingested.
    """

    def __init__(self, kind, event_type=None):
        self.kind = kind
        self.event_type = event_type
        self.records = []
        self.failures = []

    @property
    def accepted_count(self):
        return len(self.records)

    @property
    def filtered_count(self):
        return len(self.failures)

    @property
    def total_count(self):
        return self.accepted_count + self.filtered_count


class BaseNormalizer:
    """
    Common normalization pipeline; subclasses fill in the alias tables.
    """
    provider = None

    # Webhook envelope
    event_type_keys = ()
    event_kinds = {}
    device_id_keys = ()
    record_root = None
    log_list_keys = ()
    location_root_keys = ()

    # Canonical field -> ordered aliases
    log_fields = {}
    location_fields = {}
    event_fields = {}

    default_event_severity = 'critical'
    default_event_title = 'HOS Violation'

    schemas = {
        KIND_LOG: DutyStatusRecordSerializer,
        KIND_LOCATION: LocationRecordSerializer,
        KIND_VIOLATION: ComplianceEventRecordSerializer,
    }

    def get_event_type(self, payload):
        value = probe(payload, self.event_type_keys)
        return str(value) if value is not None else None

    def get_event_kind(self, event_type):
        return self.event_kinds.get(event_type)

    def get_device_id(self, payload):
        value = probe(payload, self.device_id_keys)
        return str(value) if value is not None else None

    def get_record_root(self, payload):
        if self.record_root:
            root = dig(payload, self.record_root)
            if isinstance(root, dict):
                return root
        return payload

    def extract_items(self, payload, kind):
        """Items of one webhook delivery; most deliveries carry exactly one."""
        root = self.get_record_root(payload)
        if kind == KIND_LOG:
            for key in self.log_list_keys:
                items = root.get(key)
                if isinstance(items, list):
                    return items
        elif kind == KIND_LOCATION:
            for key in self.location_root_keys:
                nested = root.get(key)
                if isinstance(nested, dict):
                    return [nested]
        return [root]

    def normalize(self, payload):
        """
        Normalize one webhook delivery. Returns None for event types this
        provider sends but the ELD core does not store.
        """
        event_type = self.get_event_type(payload)
        kind = self.get_event_kind(event_type)
        if kind is None:
            return None
        result = self.normalize_items(kind, self.extract_items(payload, kind))
        result.event_type = event_type
        return result

    def normalize_items(self, kind, items):
        result = NormalizationResult(kind)
        builder = {
            KIND_LOG: self.build_log,
            KIND_LOCATION: self.build_location,
            KIND_VIOLATION: self.build_event,
        }[kind]
        schema = self.schemas[kind]

        for index, item in enumerate(items):
            if not isinstance(item, dict):
                result.failures.append(
                    NormalizationFailure(index, {'non_field_errors': ['Expected an object.']})
                )
                continue

            serializer = schema(data=compact(builder(item)))
            if serializer.is_valid():
                result.records.append(dict(serializer.validated_data))
            else:
                result.failures.append(NormalizationFailure(index, serializer.errors))

        if result.failures:
            logger.info(
                f"{self.provider} {kind}: filtered {result.filtered_count} "
                f"of {result.total_count} record(s)"
            )
        return result

    def field(self, item, fields, name):
        return probe(item, fields.get(name, ()))

    def build_log(self, item):
        f = self.log_fields
        address = self.field(item, f, 'location_address')
        certified = self.field(item, f, 'certified')
        return {
            'external_id': self.field(item, f, 'external_id'),
            'provider_driver_id': self.field(item, f, 'driver_id'),
            'log_type': normalize_log_type(self.provider, self.field(item, f, 'log_type')),
            'start_time': coerce_timestamp(self.field(item, f, 'start_time')),
            'end_time': coerce_timestamp(self.field(item, f, 'end_time')),
            'duration_minutes': to_minutes(self.field(item, f, 'duration_minutes')),
            'odometer_start': self.field(item, f, 'odometer_start'),
            'odometer_end': self.field(item, f, 'odometer_end'),
            'location_start': to_point(self.field(item, f, 'location_start')),
            'location_end': to_point(self.field(item, f, 'location_end')),
            'location_address': address if isinstance(address, str) else None,
            'certified': bool(certified) if certified is not None else None,
            'raw_data': item,
        }

    def build_location(self, item):
        f = self.location_fields
        return {
            'external_id': self.field(item, f, 'external_id'),
            'provider_driver_id': self.field(item, f, 'driver_id'),
            'latitude': self.field(item, f, 'latitude'),
            'longitude': self.field(item, f, 'longitude'),
            'speed': self.field(item, f, 'speed'),
            'heading': self.field(item, f, 'heading'),
            'odometer': self.field(item, f, 'odometer'),
            'address': self.field(item, f, 'address'),
            'engine_status': self.field(item, f, 'engine_status'),
            'timestamp': coerce_timestamp(self.field(item, f, 'timestamp')),
        }

    def build_event(self, item):
        """Provider-reported violations are always HOS violations."""
        f = self.event_fields
        violation_type = self.field(item, f, 'title')
        metadata = {'provider': self.provider}
        if violation_type is not None:
            metadata['violation_type'] = violation_type
        return {
            'external_id': self.field(item, f, 'external_id'),
            'provider_driver_id': self.field(item, f, 'driver_id'),
            'event_type': ComplianceEvent.EVENT_HOS_VIOLATION,
            'severity': normalize_severity(
                self.field(item, f, 'severity'), self.default_event_severity
            ),
            'title': violation_type or self.default_event_title,
            'description': self.field(item, f, 'description'),
            'event_time': coerce_timestamp(self.field(item, f, 'event_time')),
            'location': to_point(self.field(item, f, 'location')),
            'metadata': metadata,
        }
