"""
Celery tasks for ELD alert delivery and the periodic HOS exception scan.
"""
from celery import shared_task
from django.utils import timezone
from apps.core.models import Driver
from .alerts import ComplianceEventEmitter
from .models import ComplianceEvent
from .notifications import AlertingClient
from .services import HOSComplianceService
import logging

logger = logging.getLogger(__name__)


def _retry_countdown(retries):
    return 30 * 2 ** retries


@shared_task(bind=True, max_retries=3)
def deliver_compliance_alert(self, event_id):
    """
    Send one compliance event to the alerting service and stamp it notified.
    """
    event = ComplianceEvent.objects.filter(pk=event_id).first()
    if event is None:
        logger.warning(f"Compliance event {event_id} vanished before its alert was sent")
        return {'success': False, 'error': 'Event not found'}

    if event.notified_at:
        return {'success': True, 'event_id': event.pk, 'message': 'Already notified'}

    delivered = AlertingClient().send_alert(
        title=event.title,
        message=event.description or event.title,
        severity=event.severity,
        driver_id=event.driver_id,
        truck_id=event.truck_id,
        device_id=event.eld_device_id,
        event_id=event.pk,
        company_id=event.company_id,
    )

    if delivered:
        ComplianceEvent.objects.filter(pk=event.pk).update(notified_at=timezone.now())
        logger.info(f"Alert sent for compliance event {event.pk}")
        return {'success': True, 'event_id': event.pk}

    if self.request.retries < self.max_retries:
        raise self.retry(countdown=_retry_countdown(self.request.retries))

    logger.error(f"Giving up on alert for compliance event {event.pk} (driver {event.driver_id})")
    return {'success': False, 'event_id': event.pk, 'message': 'Alert delivery failed after retries'}


@shared_task(bind=True, max_retries=3)
def deliver_hos_warning(self, company_id, driver_id, title, message):
    """
    Send an approaching-limit warning; nothing is persisted for warnings.
    """
    delivered = AlertingClient().send_alert(
        title=title,
        message=message,
        severity='warning',
        driver_id=driver_id,
        company_id=company_id,
    )

    if delivered:
        return {'success': True, 'driver_id': driver_id}

    if self.request.retries < self.max_retries:
        raise self.retry(countdown=_retry_countdown(self.request.retries))

    logger.error(f"Giving up on HOS warning '{title}' for driver {driver_id}")
    return {'success': False, 'driver_id': driver_id}


@shared_task
def scan_hos_exceptions():
    """
    Periodic task: recompute every active driver's HOS state, record derived
    violations and warn about limits that are close.
    """
    service = HOSComplianceService()
    emitter = ComplianceEventEmitter()
    summary = {'drivers': 0, 'violations': 0, 'warnings': 0, 'errors': 0}

    drivers = Driver.objects.filter(is_active=True, company__is_active=True).select_related('company')
    for driver in drivers:
        summary['drivers'] += 1
        try:
            state = service.get_state(driver)
            latest = service.latest_log(driver, state.as_of)
            created = emitter.emit_derived(
                driver,
                state,
                truck=latest.truck if latest else None,
                device=latest.eld_device if latest else None,
            )
            warned = emitter.emit_warnings(driver, state)
        except Exception as e:
            logger.exception(f"HOS scan failed for driver {driver.pk}: {str(e)}")
            summary['errors'] += 1
            continue

        summary['violations'] += len(created)
        summary['warnings'] += len(warned)

    logger.info(
        f"HOS scan finished: {summary['drivers']} drivers, "
        f"{summary['violations']} new violations, {summary['warnings']} warnings"
    )
    return summary
