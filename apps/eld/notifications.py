"""
Client for the external alerting service.
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class AlertingClient:
    """
    Posts compliance alerts as JSON. ``send_alert`` reports delivery as a
    boolean and never raises; callers decide whether to retry.
    """

    def __init__(self, url=None, api_key=None, timeout=None):
        self.url = url if url is not None else settings.ALERTING_WEBHOOK_URL
        self.api_key = api_key if api_key is not None else settings.ALERTING_API_KEY
        self.timeout = timeout or settings.ALERTING_TIMEOUT_SECONDS

    def send_alert(self, title, message, severity, driver_id=None, truck_id=None,
                   device_id=None, event_id=None, company_id=None):
        if not self.url:
            logger.warning(f"ALERTING_WEBHOOK_URL not configured; alert '{title}' not sent")
            return False

        payload = {
            'title': title,
            'message': message,
            'severity': severity,
            'entities': {
                'company_id': company_id,
                'driver_id': driver_id,
                'truck_id': truck_id,
                'device_id': device_id,
                'event_id': event_id,
            },
        }
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f"Bearer {self.api_key}"

        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Alert delivery failed for '{title}' (driver {driver_id}): {str(e)}")
            return False

        return True
