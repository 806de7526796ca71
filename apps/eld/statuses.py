"""
Shared lookup tables mapping provider vocabularies onto the canonical
duty-status, event-type and severity values.
"""
import logging

from .models import (
    PROVIDER_SAMSARA, PROVIDER_KEEPTRUCKIN, PROVIDER_GEOTAB, PROVIDER_MOBILE,
    DutyStatusLog, ComplianceEvent,
)

logger = logging.getLogger(__name__)

DRIVING = DutyStatusLog.LOG_DRIVING
ON_DUTY = DutyStatusLog.LOG_ON_DUTY
OFF_DUTY = DutyStatusLog.LOG_OFF_DUTY
SLEEPER = DutyStatusLog.LOG_SLEEPER


def lookup_key(value):
    """Case/separator-insensitive key: 'Sleeper-Berth', 'sleeper_berth' and 'sleeperBerth' collide."""
    return ''.join(ch for ch in str(value).lower() if ch not in '_- ')


_COMMON_STATUSES = {
    'driving': DRIVING,
    'drive': DRIVING,
    'onduty': ON_DUTY,
    'ondutynotdriving': ON_DUTY,
    'yardmove': ON_DUTY,
    'offduty': OFF_DUTY,
    'personalconveyance': OFF_DUTY,
    'sleeper': SLEEPER,
    'sleeperberth': SLEEPER,
}

STATUS_ALIASES = {
    PROVIDER_SAMSARA: dict(_COMMON_STATUSES),
    PROVIDER_KEEPTRUCKIN: dict(_COMMON_STATUSES),
    PROVIDER_GEOTAB: {
        **_COMMON_STATUSES,
        'd': DRIVING,
        'on': ON_DUTY,
        'off': OFF_DUTY,
        'sb': SLEEPER,
        'pc': OFF_DUTY,
        'ym': ON_DUTY,
    },
    PROVIDER_MOBILE: dict(_COMMON_STATUSES),
}


def normalize_log_type(provider, value):
    """
    Map a provider duty status onto a canonical log type.

    Returns None when the value is absent; unrecognized values fall back to
    off duty with a warning so one odd record never fails a batch.
    """
    if value is None or value == '':
        return None
    table = STATUS_ALIASES.get(provider, _COMMON_STATUSES)
    canonical = table.get(lookup_key(value))
    if canonical is None:
        logger.warning(f"Unknown {provider} duty status '{value}', defaulting to {OFF_DUTY}")
        return OFF_DUTY
    return canonical


EVENT_TYPE_ALIASES = {
    'hosviolation': ComplianceEvent.EVENT_HOS_VIOLATION,
    'hos': ComplianceEvent.EVENT_HOS_VIOLATION,
    'speeding': ComplianceEvent.EVENT_SPEEDING,
    'speed': ComplianceEvent.EVENT_SPEEDING,
    'hardbrake': ComplianceEvent.EVENT_HARD_BRAKE,
    'harshbrake': ComplianceEvent.EVENT_HARD_BRAKE,
    'harshbraking': ComplianceEvent.EVENT_HARD_BRAKE,
    'devicemalfunction': ComplianceEvent.EVENT_DEVICE_MALFUNCTION,
    'malfunction': ComplianceEvent.EVENT_DEVICE_MALFUNCTION,
    'other': ComplianceEvent.EVENT_OTHER,
}


def normalize_event_type(value):
    """
    Return ``(canonical_type, original)``; ``original`` is only set when the
    value had to be folded into 'other'.
    """
    if value is None or value == '':
        return None, None
    canonical = EVENT_TYPE_ALIASES.get(lookup_key(value))
    if canonical is None:
        return ComplianceEvent.EVENT_OTHER, str(value)
    return canonical, None


SEVERITY_ALIASES = {
    'info': 'info',
    'low': 'info',
    'warning': 'warning',
    'warn': 'warning',
    'medium': 'warning',
    'minor': 'warning',
    'critical': 'critical',
    'high': 'critical',
    'major': 'critical',
    'severe': 'critical',
}


def normalize_severity(value, default):
    if value is None or value == '':
        return default
    return SEVERITY_ALIASES.get(lookup_key(value), default)
