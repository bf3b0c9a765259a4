"""
API views for Lead Relay Service.
"""
import logging
import time
import uuid

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.http import Http404, HttpResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.exceptions import APIException, ParseError, Throttled
from rest_framework.response import Response
from rest_framework.views import APIView

from leads.exceptions import (
    DuplicateLeadError,
    InvalidStateTransition,
    InvalidStatusError,
    LeadNotFoundError,
    LeadValidationError,
)
from leads.serializers import (
    SORT_FIELDS,
    BulkForwardSerializer,
    LeadFilterQuerySerializer,
    LeadListQuerySerializer,
    LeadSerializer,
    flatten_errors,
)
from leads.services import repository
from leads.services.intake import LeadIntakeService
from leads.services.normalization import sanitize
from leads.services.repository import LeadFilter
from leads.services.validation import require_valid_lead

logger = logging.getLogger(__name__)

PROCESS_STARTED_AT = time.monotonic()

NOT_FOUND = {'success': False, 'message': 'Lead not found'}
INTERNAL_ERROR = {'success': False, 'message': 'Internal server error'}


class LeadAPIView(APIView):
    """
    Base view: request timing, correlation ids and the 500 fallback.
    """

    def initial(self, request, *args, **kwargs):
        self.started_at = time.monotonic()
        self.correlation_id = str(uuid.uuid4())
        super().initial(request, *args, **kwargs)

    def elapsed_ms(self) -> int:
        started = getattr(self, 'started_at', None)
        return int((time.monotonic() - started) * 1000) if started else 0

    def get_service(self) -> LeadIntakeService:
        return LeadIntakeService()

    def throttled(self, request, wait):
        logger.warning(
            f"Rate limit exceeded for {request.META.get('REMOTE_ADDR')}, "
            f"correlation_id={getattr(self, 'correlation_id', None)}"
        )
        raise Throttled(wait, detail='Too many requests from this IP, please try again later.')

    def handle_exception(self, exc):
        if isinstance(exc, (APIException, Http404, PermissionDenied)):
            return super().handle_exception(exc)

        logger.error(
            f"Error processing {self.request.method} {self.request.path}: {exc}, "
            f"correlation_id={getattr(self, 'correlation_id', None)}",
            exc_info=True
        )
        return Response(INTERNAL_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        correlation_id = getattr(self, 'correlation_id', None)
        if correlation_id:
            response['X-Correlation-ID'] = correlation_id
        return response

    def validation_failed(self, errors) -> Response:
        return Response(
            {
                'success': False,
                'message': 'Validation failed',
                'errors': flatten_errors(errors) if isinstance(errors, dict) else errors,
            },
            status=status.HTTP_400_BAD_REQUEST
        )


@method_decorator(csrf_exempt, name='dispatch')
class LeadIntakeView(LeadAPIView):
    """
    Webhook endpoint for receiving leads from the lead-generation provider.

    GET|POST /api/leads/
    - Validates and sanitizes the submitted fields
    - Stores the lead at status pending
    - Forwards it to the marketing or WhatsApp API and records the outcome
    - Returns 200 with plain text RECEIVED
    """

    def get(self, request):
        return self._intake(request, request.query_params)

    def post(self, request):
        try:
            payload = request.data
        except ParseError as e:
            logger.warning(
                f"Malformed JSON payload: {e}, "
                f"correlation_id={self.correlation_id}"
            )
            return Response(
                {'success': False, 'message': 'Malformed JSON'},
                status=status.HTTP_400_BAD_REQUEST
            )
        return self._intake(request, payload)

    def _intake(self, request, raw):
        """
        Returns:
            200 OK: text/plain RECEIVED
            400 Bad Request: Validation failed, every violation listed
            409 Conflict: leadid already exists
            500 Internal Server Error: Unexpected error
        """
        # 1. Validate every rule, collecting all violations
        try:
            lead_data = require_valid_lead(raw)
        except LeadValidationError as e:
            leadid = raw.get('leadid') if hasattr(raw, 'get') else None
            logger.warning(
                f"Lead validation failed for leadid={leadid}: {e.errors}, "
                f"processing_time={self.elapsed_ms()}ms, correlation_id={self.correlation_id}"
            )
            return self.validation_failed(e.errors)
        except Exception as e:
            logger.error(
                f"Validation error: {e}, correlation_id={self.correlation_id}",
                exc_info=True
            )
            return Response(
                {'success': False, 'message': 'Internal validation error'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        # 2. Sanitize whitespace
        lead_data = sanitize(lead_data)
        logger.info(f"Lead validation successful for leadid={lead_data['leadid']}")

        # 3. Store and forward; the status is settled before answering
        try:
            lead = self.get_service().create_lead(lead_data)
        except DuplicateLeadError as e:
            return Response(
                {'success': False, 'message': 'Lead already exists', 'leadid': e.leadid},
                status=status.HTTP_409_CONFLICT
            )

        # 4. Respond
        logger.info(
            f"Lead {lead.leadid} received via {request.method}, "
            f"processing_time={self.elapsed_ms()}ms, correlation_id={self.correlation_id}"
        )
        return HttpResponse('RECEIVED', content_type='text/plain', status=status.HTTP_200_OK)


class LeadListView(LeadAPIView):
    """GET /api/leads/list: filtered, sorted, paginated leads."""

    def get(self, request):
        # 1. Parse and check the query parameters
        query = LeadListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return self.validation_failed(query.errors)
        params = query.validated_data

        # 2. Filter, sort and paginate
        lead_filter = LeadFilter(
            city=params.get('city'),
            category=params.get('category'),
            leadtype=params.get('leadtype'),
            status=params.get('status'),
            start_date=params.get('startDate'),
            end_date=params.get('endDate'),
        )
        page = repository.list_filtered(
            lead_filter,
            sort_by=SORT_FIELDS[params['sortBy']],
            sort_order=params['sortOrder'],
            page=params['page'],
            limit=params['limit'],
        )

        # 3. Respond with the page and its pagination block
        processing_time = self.elapsed_ms()
        logger.info(
            f"Leads retrieved: count={len(page.items)}, total={page.total}, "
            f"page={page.page}, processing_time={processing_time}ms"
        )
        return Response({
            'success': True,
            'data': LeadSerializer(page.items, many=True).data,
            'pagination': page.pagination(),
            'processingTime': processing_time,
        })


class LeadStatsView(LeadAPIView):
    """GET /api/leads/stats: status overview plus top cities and categories."""

    def get(self, request):
        query = LeadFilterQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return self.validation_failed(query.errors)
        params = query.validated_data

        lead_filter = LeadFilter(
            city=params.get('city'),
            category=params.get('category'),
            start_date=params.get('startDate'),
            end_date=params.get('endDate'),
        )
        data = {
            'overview': repository.aggregate_overview(lead_filter),
            'cityStats': repository.aggregate_top_by('city', lead_filter),
            'categoryStats': repository.aggregate_top_by('category', lead_filter),
        }

        processing_time = self.elapsed_ms()
        logger.info(f"Lead statistics retrieved, processing_time={processing_time}ms")
        return Response({'success': True, 'data': data, 'processingTime': processing_time})


class LeadDetailView(LeadAPIView):
    """GET and DELETE /api/leads/<leadid>."""

    def get(self, request, leadid):
        lead = repository.find_by_leadid(leadid)
        if lead is None:
            logger.warning(f"Lead not found: {leadid}")
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'success': True,
            'data': LeadSerializer(lead).data,
            'processingTime': self.elapsed_ms(),
        })

    def delete(self, request, leadid):
        try:
            self.get_service().delete_lead(leadid)
        except LeadNotFoundError:
            logger.warning(f"Lead not found for deletion: {leadid}")
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'success': True,
            'message': 'Lead deleted successfully',
            'processingTime': self.elapsed_ms(),
        })


class LeadStatusView(LeadAPIView):
    """PATCH /api/leads/<leadid>/status."""

    def patch(self, request, leadid):
        new_status = request.data.get('status') if isinstance(request.data, dict) else None

        try:
            lead = self.get_service().update_status(leadid, new_status)
        except InvalidStatusError:
            return Response(
                {
                    'success': False,
                    'message': 'Invalid status. Must be pending, processed, or failed',
                },
                status=status.HTTP_400_BAD_REQUEST
            )
        except LeadNotFoundError:
            logger.warning(f"Lead not found for status update: {leadid}")
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'success': True,
            'data': LeadSerializer(lead).data,
            'processingTime': self.elapsed_ms(),
        })


class LeadRetryView(LeadAPIView):
    """POST /api/leads/<leadid>/retry: one more forwarding attempt for a failed lead."""

    def post(self, request, leadid):
        try:
            lead, result = self.get_service().retry_forwarding(leadid)
        except LeadNotFoundError:
            logger.warning(f"Lead not found for retry: {leadid}")
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidStateTransition as e:
            return Response(
                {
                    'success': False,
                    'message': 'Lead is not in failed status',
                    'currentStatus': e.current_status,
                },
                status=status.HTTP_400_BAD_REQUEST
            )

        if not result.success:
            return Response(
                {
                    'success': False,
                    'message': 'Lead forwarding retry failed',
                    'error': result.error,
                    'processingTime': self.elapsed_ms(),
                },
                status=status.HTTP_502_BAD_GATEWAY
            )

        return Response({
            'success': True,
            'message': 'Lead forwarding retry successful',
            'data': {
                'leadid': lead.leadid,
                'status': lead.status,
                'apiEndpoint': result.endpoint,
                'category': result.category,
            },
            'processingTime': self.elapsed_ms(),
        })


class BulkForwardView(LeadAPIView):
    """POST /api/leads/bulk-forward with {leadIds: [...]} (1 to 100 ids)."""

    def post(self, request):
        body = BulkForwardSerializer(data=request.data)
        if not body.is_valid():
            errors = flatten_errors(body.errors)
            return Response(
                {'success': False, 'message': errors[0]['message'], 'errors': errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            report = self.get_service().bulk_forward(body.validated_data['leadIds'])
        except LeadNotFoundError:
            return Response(
                {'success': False, 'message': 'No leads found with the provided IDs'},
                status=status.HTTP_404_NOT_FOUND
            )

        return Response({
            'success': True,
            'message': 'Bulk lead forwarding completed',
            'summary': report.summary(),
            'details': report.details,
            'processingTime': self.elapsed_ms(),
        })


class HealthView(APIView):
    """GET /health: liveness probe, never rate limited."""

    throttle_classes = []

    def get(self, request):
        return Response({
            'status': 'OK',
            'timestamp': timezone.now().isoformat(),
            'uptime': round(time.monotonic() - PROCESS_STARTED_AT, 3),
            'environment': settings.APP_ENV,
        })
