# Views for api app

from datetime import date as date_cls

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from django.utils import timezone

from apps.core.models import Student, VerificationEvent
from apps.redemption.clock import current_config, mess_today
from apps.redemption.codes import code_history, issue_code
from apps.redemption.ledger import logs_for_date
from apps.redemption.verification import verify_by_code, verify_by_qr, verify_by_short_id
from .serializers import (
    CodeVerifySerializer,
    MealLogSerializer,
    PickupCodeSerializer,
    QrVerifySerializer,
    ShortIdVerifySerializer,
    StudentSnapshotSerializer,
    VerificationEventSerializer,
)

FEED_LIMIT = 50


def _request_context(request, data):
    return {
        'device_info': data.get('device_info', ''),
        'staff_token': getattr(request.user, 'staff_token', None),
    }


def _outcome_response(outcome):
    body = {
        'result': outcome.reason,
        'access_method': outcome.access_method,
    }
    if outcome.meal:
        body['meal'] = outcome.meal
    if outcome.student is not None:
        body['student_snapshot'] = StudentSnapshotSerializer(outcome.student).data
    if outcome.success:
        body['message'] = outcome.message
        body['meal_log'] = MealLogSerializer(outcome.log).data
    else:
        body['reason'] = outcome.message

    code = status.HTTP_503_SERVICE_UNAVAILABLE if outcome.retryable else status.HTTP_200_OK
    return Response(body, status=code)


@api_view(['POST'])
def verify_short_id(request):
    """Verify and log a meal by the student's short numeric ID"""
    serializer = ShortIdVerifySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    outcome = verify_by_short_id(data['short_id'], **_request_context(request, data))
    return _outcome_response(outcome)


@api_view(['POST'])
def verify_code(request):
    """Redeem a delegated pickup code"""
    serializer = CodeVerifySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    outcome = verify_by_code(data['code'], **_request_context(request, data))
    return _outcome_response(outcome)


@api_view(['POST'])
def verify_qr(request):
    """Handle a scanned identity QR code"""
    serializer = QrVerifySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    outcome = verify_by_qr(data['qr_data'], **_request_context(request, data))
    return _outcome_response(outcome)


@api_view(['GET'])
def verification_feed(request):
    """Recent verification attempts, newest first. ``since`` returns only newer events."""
    events = VerificationEvent.objects.select_related('student').order_by('-id')
    since = request.query_params.get('since')
    if since:
        try:
            events = events.filter(id__gt=int(since))
        except ValueError:
            return Response({'error': 'Invalid since'}, status=status.HTTP_400_BAD_REQUEST)

    return Response(VerificationEventSerializer(events[:FEED_LIMIT], many=True).data)


@api_view(['GET'])
def meal_logs(request):
    """Ledger rows for a date, today by default"""
    raw_date = request.query_params.get('date')
    try:
        day = date_cls.fromisoformat(raw_date) if raw_date else mess_today()
    except ValueError:
        return Response({'error': 'Invalid date'}, status=status.HTTP_400_BAD_REQUEST)

    logs = logs_for_date(day)
    return Response({
        'date': day.isoformat(),
        'count': logs.count(),
        'logs': MealLogSerializer(logs, many=True).data,
    })


@api_view(['GET'])
def student_snapshot(request, short_id):
    """Preview shown to staff before verifying"""
    student = get_object_or_404(Student, short_id=short_id)
    return Response(StudentSnapshotSerializer(student).data)


@api_view(['GET', 'POST'])
def student_codes(request, short_id):
    """List recent pickup codes, or issue a new one"""
    student = get_object_or_404(Student, short_id=short_id)
    now = timezone.now()

    if request.method == 'POST':
        if not student.is_active:
            return Response(
                {'error': f"{student.full_name}'s subscription is inactive"},
                status=status.HTTP_409_CONFLICT
            )
        pickup = issue_code(student, now=now)
        return Response(
            PickupCodeSerializer(pickup, context={'now': now}).data,
            status=status.HTTP_201_CREATED
        )

    return Response(PickupCodeSerializer(code_history(student), many=True, context={'now': now}).data)


@api_view(['GET'])
def meal_windows(request):
    """Business hours and prices shown on terminals"""
    config = current_config()
    return Response({
        'timezone': config.timezone,
        'slot_policy': config.policy,
        'cutoff_hour': config.cutoff_hour,
        'meals': config.business_hours(),
    })
