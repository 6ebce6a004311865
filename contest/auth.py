"""
Admin authentication
====================

Stateless bearer tokens for the admin API:
- generate_token(): HS256 JWT carrying the admin id, JWT_EXPIRES_HOURS long
- verify_token(): decoded payload, or None for a bad/expired token
- admin_required: view decorator that loads request.admin or answers 401
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
import logging

import jwt  # pyright: ignore[reportMissingImports]
from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.http import JsonResponse  # pyright: ignore[reportMissingModuleSource]

from .models import AdminAccount

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'


def generate_token(admin_id):
    """Generate JWT token for an admin."""
    payload = {
        'adminId': admin_id,
        'exp': datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token):
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.info(f"Token validation failed: {str(e)}")
        return None


def get_request_admin(request):
    """
    Resolve the admin from the Authorization header.

    Returns:
        (admin, error message); admin is None when authentication failed
    """
    auth_header = request.META.get('HTTP_AUTHORIZATION', '')
    if not auth_header.startswith('Bearer '):
        return None, 'No token provided'

    payload = verify_token(auth_header.split(' ', 1)[1].strip())
    if not payload or 'adminId' not in payload:
        return None, 'Invalid or expired token'

    admin = AdminAccount.objects.filter(id=payload['adminId']).first()
    if admin is None:
        return None, 'Admin not found'

    return admin, None


def admin_required(view_func):
    """Reject the request with 401 unless it carries a valid admin token."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        admin, error = get_request_admin(request)
        if admin is None:
            return JsonResponse({'error': error}, status=401)
        request.admin = admin
        return view_func(request, *args, **kwargs)
    return wrapper
