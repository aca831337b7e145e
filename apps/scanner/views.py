# Views for scanner app

import hashlib

from django.conf import settings
from django.http import HttpResponseForbidden
from django.shortcuts import render
from django.utils import timezone

from apps.core.models import StaffToken
from apps.redemption.clock import current_config


def scanner_page(request, token):
    """Staff verification terminal"""
    token_hash = hashlib.sha256(token.encode()).hexdigest()
    staff_token = StaffToken.objects.filter(token_hash=token_hash, active=True).first()
    if staff_token is None or (staff_token.expires_at and timezone.now() > staff_token.expires_at):
        return HttpResponseForbidden("Invalid or expired staff token")

    config = current_config()
    context = {
        'token': token,
        'terminal': staff_token.label,
        'api_base': '/api/v1',
        'meals': config.business_hours(),
        'code_length': settings.MESS_CONFIG['code_length'],
    }
    return render(request, 'scanner/scanner.html', context)
