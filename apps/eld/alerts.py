"""
Compliance-event emission and non-blocking alert dispatch.

Dispatch is scheduled for after the surrounding transaction commits and
handed to Celery; a broker failure is logged and swallowed so alerting can
never fail or roll back the ingestion that triggered it.
"""
import logging

from django.core.cache import cache
from django.db import transaction

from .hos import DRIVING_LIMIT, ON_DUTY_LIMIT, BREAK_REQUIRED
from .models import ComplianceEvent

logger = logging.getLogger(__name__)

WARN_REMAINING_DRIVING = 2 * 3600
WARN_REMAINING_ON_DUTY = 1 * 3600


class AlertDispatcher:
    """
    Fire-and-forget bridge to the alert delivery tasks.
    """

    def dispatch_event(self, event):
        event_id = event.pk
        transaction.on_commit(lambda: self._enqueue_event(event_id))

    def dispatch_warning(self, driver, title, message):
        kwargs = {
            'company_id': driver.company_id,
            'driver_id': driver.pk,
            'title': title,
            'message': message,
        }
        transaction.on_commit(lambda: self._enqueue_warning(kwargs))

    def _enqueue_event(self, event_id):
        from .tasks import deliver_compliance_alert

        try:
            deliver_compliance_alert.delay(event_id)
        except Exception as e:
            logger.error(f"Could not queue alert for compliance event {event_id}: {str(e)}")

    def _enqueue_warning(self, kwargs):
        from .tasks import deliver_hos_warning

        try:
            deliver_hos_warning.delay(**kwargs)
        except Exception as e:
            logger.error(f"Could not queue HOS warning for driver {kwargs['driver_id']}: {str(e)}")


def approaching_limits(state):
    """(code, title, message) for every limit the driver is close to."""
    warnings = []
    remaining_driving = state.remaining_driving_seconds
    remaining_on_duty = state.remaining_on_duty_seconds

    if 0 < remaining_driving < WARN_REMAINING_DRIVING:
        warnings.append((
            DRIVING_LIMIT,
            'Driving limit approaching',
            f"{state.remaining_driving_hours} hours of driving remaining",
        ))
    if 0 < remaining_on_duty < WARN_REMAINING_ON_DUTY:
        warnings.append((
            ON_DUTY_LIMIT,
            'On-duty limit approaching',
            f"{state.remaining_on_duty_hours} hours of on-duty time remaining",
        ))
    if state.needs_break and BREAK_REQUIRED not in state.violation_codes:
        warnings.append((
            BREAK_REQUIRED,
            '30-minute break required',
            "Driver has reached 8 hours of driving without a qualifying break",
        ))
    return warnings


class ComplianceEventEmitter:
    """
    Turns reported and calculated violations into ComplianceEvent rows and
    asks the dispatcher to notify once per new event.
    """

    def __init__(self, dispatcher=None):
        self.dispatcher = dispatcher or AlertDispatcher()

    def emit_reported(self, events):
        """Notify for events ingestion has just created."""
        for event in events:
            self.dispatcher.dispatch_event(event)

    def emit_derived(self, driver, state, truck=None, device=None):
        """
        Record the calculator's violations. One event per driver, violation
        code and duty window, however often the state is recomputed.
        """
        created_events = []
        window = state.window_start.isoformat() if state.window_start else 'off-duty'

        for violation in state.violations:
            dedupe_key = f"hos:{driver.pk}:{violation.code}:{window}"
            event, created = ComplianceEvent.objects.get_or_create(
                dedupe_key=dedupe_key,
                defaults={
                    'company_id': driver.company_id,
                    'driver': driver,
                    'truck': truck,
                    'eld_device': device,
                    'event_type': ComplianceEvent.EVENT_HOS_VIOLATION,
                    'severity': 'critical',
                    'source': ComplianceEvent.SOURCE_CALCULATOR,
                    'title': violation.message,
                    'description': f"{driver.name}: {violation.message}",
                    'event_time': violation.occurred_at or state.as_of,
                    'metadata': {
                        'code': violation.code,
                        'window_start': state.window_start.isoformat() if state.window_start else None,
                        'driving_hours': state.driving_hours,
                        'on_duty_hours': state.on_duty_hours,
                        'cycle': state.rules.cycle,
                    },
                },
            )
            if created:
                logger.info(f"Recorded {violation.code} for driver {driver.pk}")
                created_events.append(event)
                self.dispatcher.dispatch_event(event)

        return created_events

    def emit_warnings(self, driver, state, ttl=None):
        """
        Warn about limits the driver is approaching, once per duty window.
        """
        sent = []
        window = state.window_start.isoformat() if state.window_start else 'off-duty'
        ttl = ttl or state.rules.duty_window

        for code, title, message in approaching_limits(state):
            if not cache.add(f"hos-warning:{driver.pk}:{code}:{window}", True, timeout=ttl):
                continue
            self.dispatcher.dispatch_warning(driver, title, f"{driver.name}: {message}")
            sent.append(code)

        return sent
