"""
ELD service classes: webhook and mobile ingestion, driver mappings and
HOS compliance queries.
"""
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from apps.core.models import Driver, Vehicle
from .alerts import ComplianceEventEmitter
from .exceptions import ELDValidationError, NotFoundError
from .hos import HOSRuleSet, Segment, calculate_hos_state
from .identity import DriverResolver, resolve_device, resolve_registered_device
from .ingestion import IngestionStore
from .models import (
    ELDDevice, DriverMapping, DutyStatusLog, ComplianceEvent,
    PROVIDER_MOBILE,
)
from .normalizers import get_normalizer, KIND_LOG, KIND_LOCATION, KIND_VIOLATION
import logging

logger = logging.getLogger(__name__)


def store_result(device, provider, result, source, emitter):
    """
    Persist one normalization result for ``device``.

    Returns:
        (stored, inserted): records accepted and rows that did not exist yet
    """
    store = IngestionStore(device, DriverResolver(device, provider))

    if result.kind == KIND_LOG:
        inserted = store.store_logs(result.records)
    elif result.kind == KIND_LOCATION:
        inserted = store.store_locations(result.records)
    else:
        _, created_events = store.store_events(result.records, source=source)
        inserted = len(created_events)
        emitter.emit_reported(
            event for event in created_events
            if event.event_type == ComplianceEvent.EVENT_HOS_VIOLATION
        )

    store.touch_device()
    return len(result.records), inserted


class WebhookIngestionService:
    """
    Ingests one signed hardware-provider webhook delivery.
    """

    def __init__(self, provider, emitter=None):
        self.provider = provider
        self.normalizer = get_normalizer(provider)
        self.emitter = emitter or ComplianceEventEmitter()

    def ingest(self, payload):
        """
        Args:
            payload: decoded JSON body, already signature-checked

        Returns:
            Response dict ``{success, processed, stored, filtered}``
        """
        if not isinstance(payload, dict):
            raise ELDValidationError('Webhook body must be a JSON object.')

        device_id = self.normalizer.get_device_id(payload)
        if device_id is None:
            raise ELDValidationError('Payload does not identify a device.')

        event_type = self.normalizer.get_event_type(payload)
        if event_type is None:
            raise ELDValidationError('Payload has no event type.')

        device = resolve_device(self.provider, device_id)

        result = self.normalizer.normalize(payload)
        if result is None:
            logger.info(f"Unhandled {self.provider} event type '{event_type}' from device {device_id}")
            return {'success': True, 'processed': event_type}

        with transaction.atomic():
            stored, inserted = store_result(
                device, self.provider, result, ComplianceEvent.SOURCE_PROVIDER, self.emitter
            )

        if result.failures:
            logger.warning(
                f"{self.provider} device {device_id}: {result.filtered_count} "
                f"{event_type} record(s) rejected: {[f.to_dict() for f in result.failures]}"
            )

        return {
            'success': True,
            'processed': event_type,
            'stored': stored,
            'inserted': inserted,
            'filtered': result.filtered_count,
        }


class MobileSyncService:
    """
    Registration and batch sync for the first-party mobile app. Scoped to the
    authenticated user's company.
    """

    LABELS = {
        KIND_LOCATION: 'location',
        KIND_LOG: 'log',
        KIND_VIOLATION: 'event',
    }

    def __init__(self, company, emitter=None):
        self.company = company
        self.normalizer = get_normalizer(PROVIDER_MOBILE)
        self.emitter = emitter or ComplianceEventEmitter()

    @transaction.atomic
    def register_device(self, device_name, serial_number, truck_id=None,
                        app_version='', device_info=None):
        """
        Upsert a mobile device keyed by serial number.

        Returns:
            (device, created)
        """
        existing = ELDDevice.objects.filter(serial_number=serial_number).first()
        if existing is not None and existing.company_id != self.company.pk:
            logger.warning(f"Serial {serial_number} already registered to another company")
            raise NotFoundError('Device not found or access denied.')
        if existing is not None and existing.provider != PROVIDER_MOBILE:
            raise ELDValidationError({'serial_number': ['Serial number belongs to a hardware device.']})

        truck = None
        if truck_id is not None:
            truck = Vehicle.objects.filter(pk=truck_id, company=self.company).first()
            if truck is None:
                raise ELDValidationError({'truck_id': ['Truck not found.']})

        values = {
            'company': self.company,
            'device_name': device_name,
            'provider': PROVIDER_MOBILE,
            'provider_device_id': serial_number,
            'firmware_version': app_version or '',
            'device_info': device_info or {},
        }
        if truck is not None:
            values['truck'] = truck

        if existing is None:
            device = ELDDevice.objects.create(serial_number=serial_number, **values)
            logger.info(f"Registered mobile device {device.pk} for company {self.company.pk}")
            return device, True

        # A deactivated device stays deactivated
        for field, value in values.items():
            setattr(existing, field, value)
        existing.save()
        return existing, False

    def sync(self, kind, device_id, items):
        """
        Store one batch of ``kind`` records from a registered device.

        Malformed items are dropped individually; a batch with nothing valid
        left is rejected.
        """
        device = resolve_registered_device(self.company, device_id)
        result = self.normalizer.normalize_items(kind, items)
        label = self.LABELS[kind]

        if not result.records:
            raise ELDValidationError({
                'error': f"No valid {label}s to insert",
                'errors': [failure.to_dict() for failure in result.failures],
            })

        with transaction.atomic():
            stored, inserted = store_result(
                device, PROVIDER_MOBILE, result, ComplianceEvent.SOURCE_MOBILE, self.emitter
            )

        return {
            'success': True,
            'stored': stored,
            'inserted': inserted,
            'filtered': result.filtered_count,
            'message': f"Successfully synced {stored} {label}(s)",
            'errors': [failure.to_dict() for failure in result.failures],
        }


class DriverMappingService:
    """
    Dispatcher-managed provider driver id -> internal driver mappings.
    """

    def __init__(self, company):
        self.company = company

    def get_device(self, device_id):
        device = ELDDevice.objects.filter(pk=device_id, company=self.company).first()
        if device is None:
            raise NotFoundError('Device not found or access denied.')
        return device

    def get_driver(self, driver_id):
        driver = Driver.objects.filter(pk=driver_id, company=self.company).first()
        if driver is None:
            raise NotFoundError('Driver not found.')
        return driver

    @transaction.atomic
    def upsert_mapping(self, device_id, provider_driver_id, driver_id, provider=None,
                       driver_name='', driver_email=''):
        """
        Point the active mapping for (device, provider, provider driver id) at
        ``driver``, creating it when none is active.

        Returns:
            (mapping, created)
        """
        device = self.get_device(device_id)
        driver = self.get_driver(driver_id)
        provider = provider or device.provider
        key = str(provider_driver_id).strip()

        mapping = (
            DriverMapping.objects
            .select_for_update()
            .filter(eld_device=device, provider=provider, provider_driver_id=key, is_active=True)
            .first()
        )
        created = mapping is None
        if created:
            mapping = DriverMapping.objects.create(
                company=self.company,
                eld_device=device,
                provider=provider,
                provider_driver_id=key,
                driver=driver,
                driver_name=driver_name,
                driver_email=driver_email,
            )
            logger.info(f"Mapped {provider} driver {key} on device {device.pk} to driver {driver.pk}")
        else:
            mapping.driver = driver
            mapping.driver_name = driver_name or mapping.driver_name
            mapping.driver_email = driver_email or mapping.driver_email
            mapping.save()

        self.backfill_unmapped(device, key, driver)
        return mapping, created

    def backfill_unmapped(self, device, provider_driver_id, driver):
        """
        Attribute segments stored before the mapping existed. Only segments
        still without a driver are touched.

        Returns:
            Number of segments attributed
        """
        count = (
            DutyStatusLog.objects
            .filter(eld_device=device, provider_driver_id=provider_driver_id, driver__isnull=True)
            .update(driver=driver)
        )
        if count:
            logger.info(
                f"Attributed {count} unmapped log(s) of {provider_driver_id} on device {device.pk} "
                f"to driver {driver.pk}"
            )
        return count

    def assign_log(self, log, driver_id, user):
        """Manually attribute one stored segment to a driver of the company."""
        driver = self.get_driver(driver_id)
        log.driver = driver
        log.save(update_fields=['driver', 'updated_at'])
        logger.info(f"Log {log.pk} assigned to driver {driver.pk} by user {user.pk}")
        return log

    def active_mappings(self, device_id=None):
        mappings = DriverMapping.objects.filter(company=self.company, is_active=True)
        if device_id is not None:
            mappings = mappings.filter(eld_device=self.get_device(device_id))
        return mappings.select_related('eld_device', 'driver')

    def deactivate(self, mapping):
        mapping.is_active = False
        mapping.save(update_fields=['is_active', 'updated_at'])
        return mapping


class HOSComplianceService:
    """
    Loads a driver's segments and runs the HOS calculator. Results are never
    cached: every call recomputes from the stored logs.
    """

    def __init__(self, emitter=None):
        self.emitter = emitter or ComplianceEventEmitter()

    def get_driver(self, company, driver_id):
        driver = Driver.objects.select_related('company').filter(pk=driver_id, company=company).first()
        if driver is None:
            raise NotFoundError('Driver not found.')
        return driver

    def load_segments(self, driver, as_of, rules):
        since = as_of - rules.lookback
        logs = (
            DutyStatusLog.objects
            .filter(company_id=driver.company_id, driver=driver, start_time__lt=as_of)
            .filter(Q(end_time__gt=since) | Q(end_time__isnull=True))
            .order_by('start_time')
        )

        segments = []
        for log in logs:
            segment = Segment.from_log(log)
            if log.end_time is None and log.start_time < since:
                # Its successor may be older than the lookback
                segment.end_time = (
                    DutyStatusLog.objects
                    .filter(driver=driver, start_time__gt=log.start_time)
                    .order_by('start_time')
                    .values_list('start_time', flat=True)
                    .first()
                )
            segments.append(segment)
        return segments

    def latest_log(self, driver, as_of):
        return (
            DutyStatusLog.objects
            .select_related('truck', 'eld_device')
            .filter(driver=driver, start_time__lte=as_of)
            .order_by('-start_time', '-updated_at')
            .first()
        )

    def get_state(self, driver, as_of=None, record_violations=False):
        """
        HOS state of ``driver`` as of ``as_of`` (default now). With
        ``record_violations`` derived violations become compliance events.
        """
        as_of = as_of or timezone.now()
        rules = HOSRuleSet.for_driver(driver)
        state = calculate_hos_state(
            self.load_segments(driver, as_of, rules), as_of, rules, driver_id=driver.pk
        )

        if record_violations and state.violations:
            latest = self.latest_log(driver, as_of)
            self.emitter.emit_derived(
                driver,
                state,
                truck=latest.truck if latest else None,
                device=latest.eld_device if latest else None,
            )
        return state

    def company_overview(self, company, as_of=None):
        """Current HOS picture for every active driver of ``company``."""
        as_of = as_of or timezone.now()
        drivers = Driver.objects.filter(company=company, is_active=True).select_related('company')

        overview = []
        for driver in drivers:
            state = self.get_state(driver, as_of)
            latest = self.latest_log(driver, as_of)
            row = state.to_dict()
            row.update({
                'driver_name': driver.name,
                'current_status': latest.log_type if latest else None,
                'status_since': latest.start_time.isoformat() if latest else None,
                'truck_id': latest.truck_id if latest else None,
            })
            overview.append(row)
        return overview
