"""
Voter identity resolution
=========================

Builds the (ip_address, cookie_token, fingerprint) tuple used to detect
repeat voters.

How it works:
1. ensure_identity() reads the voter cookie, or mints a new random token
2. The client IP comes from X-Forwarded-For (first hop), then REMOTE_ADDR
3. The fingerprint is whatever the client sent; nothing is computed here
4. persist_identity() writes the cookie on the response, once, for new voters

Entry points wrap themselves with @with_voter_identity, which runs both steps.
Note that this sets a cookie even on read-only requests such as the vote
status check.

Security considerations:
- X-Forwarded-For is client-suppliable. Disable TRUST_FORWARDED_FOR when the
  app is not behind a proxy that overwrites it.
- None of these signals stop a determined attacker.
"""

from functools import wraps
from typing import NamedTuple, Optional
import logging
import uuid

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]

logger = logging.getLogger(__name__)

VOTER_COOKIE_NAME = 'voter_id'
VOTER_COOKIE_AGE = 365 * 24 * 60 * 60  # 1 year (seconds)
VOTER_TOKEN_MAX_LENGTH = 64
VOTER_IP_MAX_LENGTH = 64  # Vote.ip_address column width
UNKNOWN_IP = 'unknown'


class VoterIdentity(NamedTuple):
    ip_address: str
    cookie_token: str
    fingerprint: Optional[str] = None

    def with_fingerprint(self, fingerprint):
        """Return a copy carrying the client fingerprint (blank means none)."""
        return self._replace(fingerprint=normalize_fingerprint(fingerprint))


def normalize_fingerprint(fingerprint) -> Optional[str]:
    if fingerprint is None:
        return None
    fingerprint = str(fingerprint).strip()
    return fingerprint or None


def get_client_ip(request) -> str:
    """
    Extract client IP address.

    Checks in order:
    1. X-Forwarded-For, first entry (only if TRUST_FORWARDED_FOR)
    2. REMOTE_ADDR (direct connection)
    3. 'unknown'

    The result is cut to VOTER_IP_MAX_LENGTH, the width of the stored column.
    """
    if getattr(settings, 'TRUST_FORWARDED_FOR', True):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR', '')
        ip = x_forwarded_for.split(',')[0].strip()
        if ip:
            return ip[:VOTER_IP_MAX_LENGTH]

    return (request.META.get('REMOTE_ADDR') or UNKNOWN_IP)[:VOTER_IP_MAX_LENGTH]


def ensure_identity(request) -> VoterIdentity:
    """
    Resolve the voter identity for this request, minting a cookie token
    when the request carries none.

    Idempotent per request: a second call returns the same identity and
    never mints twice.
    """
    identity = getattr(request, 'voter_identity', None)
    if identity is not None:
        return identity

    token = request.COOKIES.get(VOTER_COOKIE_NAME, '').strip()
    if not token or len(token) > VOTER_TOKEN_MAX_LENGTH:
        token = uuid.uuid4().hex
        request.voter_cookie_minted = True
    else:
        request.voter_cookie_minted = False

    identity = VoterIdentity(get_client_ip(request), token)
    request.voter_identity = identity

    logger.debug(f"Voter identity: {identity.cookie_token} ({identity.ip_address})")
    return identity


def persist_identity(request, response):
    """Set the voter cookie on the response if this request minted one."""
    if getattr(request, 'voter_cookie_minted', False):
        response.set_cookie(
            VOTER_COOKIE_NAME,
            request.voter_identity.cookie_token,
            max_age=VOTER_COOKIE_AGE,
            secure=getattr(settings, 'VOTER_COOKIE_SECURE', not settings.DEBUG),
            httponly=True,
            samesite='Lax',
        )
        logger.info(f"New voter cookie set: {request.voter_identity.cookie_token}")
    return response


def with_voter_identity(view_func):
    """
    View decorator: resolve the identity before the view runs and persist
    a newly minted cookie on whatever response the view returns.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        ensure_identity(request)
        response = view_func(request, *args, **kwargs)
        return persist_identity(request, response)
    return wrapper
