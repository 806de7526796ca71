"""
Core views.
"""
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
import logging

logger = logging.getLogger(__name__)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """
    Health check endpoint to verify the API is running.
    """
    return Response({
        'status': 'healthy',
        'message': 'ELD Compliance API is running',
        'version': '1.0.0',
        'timestamp': timezone.now().isoformat(),
        'features': [
            'Provider Webhook Ingestion',
            'Mobile ELD Sync',
            'Driver Identity Mapping',
            'Hours of Service Compliance',
            'Compliance Alerts',
        ]
    })
