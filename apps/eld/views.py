"""
Views for the ELD app.
"""
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from datetime import timezone as dt_timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import APIException
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from apps.core.authentication import (
    HasCompanyMembership, IsCompanyManager, IsCompanyStaff, get_user_membership,
)
from .exceptions import AuthenticationError, ELDValidationError, PersistenceError
from .models import ELDDevice, DriverMapping, DutyStatusLog, ComplianceEvent
from .normalizers import KIND_LOG, KIND_LOCATION, KIND_VIOLATION
from .serializers import (
    ELDDeviceSerializer,
    MobileDeviceSerializer,
    MobileRegisterSerializer,
    MobileLocationSyncSerializer,
    MobileLogSyncSerializer,
    MobileEventSyncSerializer,
    DriverMappingSerializer,
    DriverMappingCreateSerializer,
    DutyStatusLogSerializer,
    DutyStatusLogAssignSerializer,
    ComplianceEventSerializer,
    ComplianceEventResolveSerializer,
)
from .services import (
    WebhookIngestionService,
    MobileSyncService,
    DriverMappingService,
    HOSComplianceService,
)
from .signatures import get_scheme, verify_signature
import logging

logger = logging.getLogger(__name__)


def get_company(request):
    return get_user_membership(request.user).company


def id_param(params, name):
    """Optional integer id from the query string."""
    value = params.get(name)
    if not value:
        return None
    if not value.isdigit():
        raise ELDValidationError({name: ['A valid integer id is required.']})
    return int(value)


def date_param(params, name):
    """Optional YYYY-MM-DD date from the query string."""
    value = params.get(name)
    if not value:
        return None
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ELDValidationError({name: ['Expected a YYYY-MM-DD date.']})
    return parsed


class CompanyScopedMixin:
    """
    Restricts querysets to the authenticated user's company.
    """
    permission_classes = [IsAuthenticated, HasCompanyMembership]

    @property
    def company(self):
        return get_company(self.request)

    def get_queryset(self):
        return super().get_queryset().filter(company=self.company)


class ProviderWebhookView(APIView):
    """
    Signed webhook endpoint for one hardware ELD provider.

    The signature covers the raw body bytes, so it is checked before the body
    is parsed.
    """
    provider = None
    authentication_classes = []
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = []

    def post(self, request):
        body = request.body
        scheme = get_scheme(self.provider)
        if not verify_signature(self.provider, body, request.META.get(scheme.meta_key)):
            raise AuthenticationError()

        try:
            result = WebhookIngestionService(self.provider).ingest(request.data)
        except APIException:
            raise
        except Exception as e:
            logger.exception(f"Error processing {self.provider} webhook: {str(e)}")
            raise PersistenceError()

        return Response(result)


class MobileRegisterView(APIView):
    """
    Register (or re-register) the mobile app installation as an ELD device.
    """
    permission_classes = [IsAuthenticated, HasCompanyMembership]

    def post(self, request):
        serializer = MobileRegisterSerializer(data=request.data)
        if not serializer.is_valid():
            raise ELDValidationError(serializer.errors)

        service = MobileSyncService(get_company(request))
        device, created = service.register_device(**serializer.validated_data)

        return Response(
            {
                'success': True,
                'device_id': device.id,
                'device': MobileDeviceSerializer(device).data,
                'message': 'Device registered successfully',
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class MobileSyncView(APIView):
    """
    Batch upload of one record kind from a registered mobile device.
    """
    kind = None
    serializer_class = None
    permission_classes = [IsAuthenticated, HasCompanyMembership]

    def post(self, request):
        serializer = self.serializer_class(data=request.data)
        if not serializer.is_valid():
            raise ELDValidationError(serializer.errors)

        company = get_company(request)
        device_id = serializer.validated_data['device_id']
        try:
            result = MobileSyncService(company).sync(self.kind, device_id, serializer.get_records())
        except APIException:
            raise
        except Exception as e:
            logger.exception(f"Error syncing mobile {self.kind} batch for device {device_id}: {str(e)}")
            raise PersistenceError()

        return Response(result, status=status.HTTP_201_CREATED)


class MobileLocationSyncView(MobileSyncView):
    kind = KIND_LOCATION
    serializer_class = MobileLocationSyncSerializer


class MobileLogSyncView(MobileSyncView):
    kind = KIND_LOG
    serializer_class = MobileLogSyncSerializer


class MobileEventSyncView(MobileSyncView):
    kind = KIND_VIOLATION
    serializer_class = MobileEventSyncSerializer


class ELDDeviceViewSet(CompanyScopedMixin,
                       mixins.CreateModelMixin,
                       mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       viewsets.GenericViewSet):
    """
    ViewSet for registering and deactivating ELD devices. Devices are never
    deleted.
    """
    queryset = ELDDevice.objects.all().select_related('truck')
    serializer_class = ELDDeviceSerializer

    def get_permissions(self):
        if self.action in ('create', 'deactivate'):
            return [IsAuthenticated(), IsCompanyStaff()]
        return super().get_permissions()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['company'] = self.company
        return context

    def get_queryset(self):
        queryset = super().get_queryset()

        provider = self.request.query_params.get('provider')
        if provider:
            queryset = queryset.filter(provider=provider)

        device_status = self.request.query_params.get('status')
        if device_status:
            queryset = queryset.filter(status=device_status)

        return queryset

    def perform_create(self, serializer):
        device = serializer.save(company=self.company)
        logger.info(f"Registered {device.provider} device {device.provider_device_id} for company {self.company.pk}")

    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        """
        Deactivate a device; its webhooks are rejected from now on.
        """
        device = self.get_object()

        if not device.is_active:
            return Response(
                {'error': 'Device is already inactive'},
                status=status.HTTP_400_BAD_REQUEST
            )

        device.status = 'inactive'
        device.save(update_fields=['status', 'updated_at'])
        logger.info(f"Deactivated device {device.pk} ({device.provider})")

        return Response(self.get_serializer(device).data)


class DriverMappingViewSet(CompanyScopedMixin,
                           mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           mixins.DestroyModelMixin,
                           viewsets.GenericViewSet):
    """
    ViewSet for provider driver mappings. DELETE soft-deletes.
    """
    queryset = DriverMapping.objects.filter(is_active=True).select_related('eld_device', 'driver')
    serializer_class = DriverMappingSerializer

    def get_permissions(self):
        if self.action in ('create', 'destroy'):
            return [IsAuthenticated(), IsCompanyStaff()]
        return super().get_permissions()

    def list(self, request, *args, **kwargs):
        device_id = request.query_params.get('device')
        if device_id is not None and not device_id.isdigit():
            raise ELDValidationError({'device': ['A valid device id is required.']})

        mappings = DriverMappingService(self.company).active_mappings(
            int(device_id) if device_id is not None else None
        )
        page = self.paginate_queryset(mappings)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(mappings, many=True).data)

    def create(self, request, *args, **kwargs):
        serializer = DriverMappingCreateSerializer(data=request.data)
        if not serializer.is_valid():
            raise ELDValidationError(serializer.errors)

        mapping, created = DriverMappingService(self.company).upsert_mapping(**serializer.validated_data)

        return Response(
            DriverMappingSerializer(mapping).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def perform_destroy(self, instance):
        DriverMappingService(self.company).deactivate(instance)
        logger.info(f"Deactivated driver mapping {instance.pk}")


class DutyStatusLogViewSet(CompanyScopedMixin, viewsets.ReadOnlyModelViewSet):
    """
    Read-only access to stored log segments, including unattributed ones
    awaiting a driver mapping.
    """
    queryset = DutyStatusLog.objects.all()
    serializer_class = DutyStatusLogSerializer

    def get_permissions(self):
        if self.action == 'assign_driver':
            return [IsAuthenticated(), IsCompanyStaff()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        driver_id = id_param(params, 'driver_id')
        if driver_id is not None:
            queryset = queryset.filter(driver_id=driver_id)

        device_id = id_param(params, 'device_id')
        if device_id is not None:
            queryset = queryset.filter(eld_device_id=device_id)

        if params.get('unmapped') == 'true':
            queryset = queryset.filter(driver__isnull=True)

        start_date = date_param(params, 'start_date')
        end_date = date_param(params, 'end_date')
        if start_date:
            queryset = queryset.filter(log_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(log_date__lte=end_date)

        return queryset.order_by('-start_time')

    @action(detail=True, methods=['post'])
    def assign_driver(self, request, pk=None):
        """
        Attribute a stored segment to one of the company's drivers, e.g. one
        that arrived before its provider driver id was mapped.
        """
        log = self.get_object()

        serializer = DutyStatusLogAssignSerializer(data=request.data)
        if not serializer.is_valid():
            raise ELDValidationError(serializer.errors)

        DriverMappingService(self.company).assign_log(
            log, serializer.validated_data['driver_id'], user=request.user
        )
        return Response(self.get_serializer(log).data)


class ComplianceEventViewSet(CompanyScopedMixin, viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for compliance events. Events are resolved, never deleted.
    """
    queryset = ComplianceEvent.objects.all().select_related('driver', 'resolved_by')
    serializer_class = ComplianceEventSerializer

    def get_permissions(self):
        if self.action == 'resolve':
            return [IsAuthenticated(), IsCompanyManager()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        for param, field in (('driver_id', 'driver_id'), ('device_id', 'eld_device_id')):
            value = id_param(params, param)
            if value is not None:
                queryset = queryset.filter(**{field: value})

        for param, field in (
            ('event_type', 'event_type'),
            ('severity', 'severity'),
            ('source', 'source'),
        ):
            value = params.get(param)
            if value:
                queryset = queryset.filter(**{field: value})

        resolved = params.get('resolved')
        if resolved in ('true', 'false'):
            queryset = queryset.filter(resolved=(resolved == 'true'))

        return queryset.order_by('-event_time')

    @action(detail=True, methods=['post'])
    def resolve(self, request, pk=None):
        """
        Resolve an event with an audit note.
        """
        event = self.get_object()

        if event.resolved:
            return Response(
                {'error': 'Event is already resolved'},
                status=status.HTTP_400_BAD_REQUEST
            )

        serializer = ComplianceEventResolveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event.mark_resolved(request.user, serializer.validated_data['note'])
        logger.info(f"Compliance event {event.pk} resolved by {request.user.pk}")

        return Response(self.get_serializer(event).data)


def parse_as_of(value):
    """Query-string timestamp; naive values are UTC."""
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ELDValidationError({'as_of': ['Expected an ISO-8601 datetime.']})
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


class DriverHOSView(APIView):
    """
    One driver's HOS state, recomputed on every request.
    """
    permission_classes = [IsAuthenticated, HasCompanyMembership]

    def get(self, request, driver_id):
        as_of = parse_as_of(request.query_params.get('as_of'))
        service = HOSComplianceService()
        driver = service.get_driver(get_company(request), driver_id)

        # Only a "now" query records violations; historical queries are read-only
        state = service.get_state(driver, as_of, record_violations=as_of is None)

        data = state.to_dict()
        data['driver_name'] = driver.name
        return Response(data)


class HOSOverviewView(APIView):
    """
    Dispatcher view of every active driver's HOS state.
    """
    permission_classes = [IsAuthenticated, IsCompanyStaff]

    def get(self, request):
        as_of = parse_as_of(request.query_params.get('as_of')) or timezone.now()
        drivers = HOSComplianceService().company_overview(get_company(request), as_of)

        return Response({
            'as_of': as_of.isoformat(),
            'count': len(drivers),
            'drivers': drivers,
        })
