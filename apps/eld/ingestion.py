"""
Idempotent persistence of normalized ELD records.

Records that carry an external id are upserted on (device, external id);
records without one are appended. Writes are chunked to
``ELD_INGEST_BATCH_SIZE`` rows.
"""
import logging

from django.conf import settings
from django.db import DatabaseError, transaction

from .exceptions import PersistenceError
from .models import DutyStatusLog, LocationPing, ComplianceEvent

logger = logging.getLogger(__name__)

LOG_UPDATE_FIELDS = [
    'driver', 'provider_driver_id', 'truck', 'log_type', 'log_date',
    'start_time', 'end_time', 'duration_minutes', 'odometer_start',
    'odometer_end', 'location_start', 'location_end', 'location_address',
    'certified', 'raw_data', 'updated_at',
]


def chunked(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


def latest_per_external_id(records):
    """
    Collapse repeats of one external id within a batch, keeping the last
    occurrence; a single upsert statement may not touch a row twice.
    """
    keyed = {}
    anonymous = []
    for record in records:
        external_id = record.get('external_id')
        if external_id is None:
            anonymous.append(record)
        else:
            keyed.pop(external_id, None)
            keyed[external_id] = record
    return anonymous + list(keyed.values())


class IngestionStore:
    """
    Writes canonical records for one device.
    """

    def __init__(self, device, driver_resolver, batch_size=None):
        self.device = device
        self.drivers = driver_resolver
        self.batch_size = batch_size or settings.ELD_INGEST_BATCH_SIZE

    def _scope(self, record):
        provider_driver_id = record.get('provider_driver_id')
        return {
            'company_id': self.device.company_id,
            'eld_device': self.device,
            'truck_id': self.device.truck_id,
            'driver': self.drivers.resolve(provider_driver_id),
        }

    def store_logs(self, records):
        """Upsert duty-status segments. Returns the number of new rows."""
        records = latest_per_external_id(records)
        objects = []
        for record in records:
            fields = dict(record)
            provider_driver_id = fields.pop('provider_driver_id', None)
            objects.append(DutyStatusLog(
                provider_driver_id='' if provider_driver_id is None else str(provider_driver_id),
                **self._scope(record),
                **fields
            ))

        def write():
            inserted = self._count_new(DutyStatusLog, objects)
            for chunk in chunked(objects, self.batch_size):
                DutyStatusLog.objects.bulk_create(
                    chunk,
                    update_conflicts=True,
                    unique_fields=['eld_device', 'external_id'],
                    update_fields=LOG_UPDATE_FIELDS,
                )
            return inserted

        return self._write('duty status log', write)

    def store_locations(self, records):
        """
        Append location pings; a resent client id is ignored, never updated.
        Returns the number of new rows.
        """
        records = latest_per_external_id(records)
        objects = []
        for record in records:
            fields = dict(record)
            fields.pop('provider_driver_id', None)
            objects.append(LocationPing(**self._scope(record), **fields))

        def write():
            inserted = self._count_new(LocationPing, objects)
            for chunk in chunked(objects, self.batch_size):
                LocationPing.objects.bulk_create(chunk, ignore_conflicts=True)
            return inserted

        return self._write('location', write)

    def store_events(self, records, source):
        """
        Upsert compliance events. Returns ``(events, created_events)`` so only
        first deliveries trigger notifications.
        """
        records = latest_per_external_id(records)
        stored = []
        created_events = []

        def write():
            for chunk in chunked(records, self.batch_size):
                for record in chunk:
                    fields = dict(record)
                    fields.pop('provider_driver_id', None)
                    external_id = fields.pop('external_id', None)
                    values = {**self._scope(record), 'source': source, **fields}

                    if external_id is None:
                        event = ComplianceEvent.objects.create(**values)
                        created = True
                    else:
                        # Resolution state belongs to dispatchers, never overwritten by resends
                        event, created = ComplianceEvent.objects.update_or_create(
                            eld_device=self.device,
                            external_id=external_id,
                            defaults={k: v for k, v in values.items() if k != 'eld_device'},
                        )
                    stored.append(event)
                    if created:
                        created_events.append(event)

        self._write('compliance event', write)
        return stored, created_events

    def _count_new(self, model, objects):
        """Objects whose external id is not stored yet for this device."""
        ids = [obj.external_id for obj in objects if obj.external_id is not None]
        existing = set()
        for chunk in chunked(ids, self.batch_size):
            existing.update(
                model.objects
                .filter(eld_device=self.device, external_id__in=chunk)
                .values_list('external_id', flat=True)
            )
        return sum(1 for obj in objects if obj.external_id is None or obj.external_id not in existing)

    def touch_device(self):
        self.device.touch_sync()

    def _write(self, label, write):
        try:
            with transaction.atomic():
                return write()
        except DatabaseError as e:
            logger.exception(
                f"Failed to store {label} records for {self.device.provider} "
                f"device {self.device.provider_device_id}: {e}"
            )
            raise PersistenceError()
