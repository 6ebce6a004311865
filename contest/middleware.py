"""
Custom middleware for the King & Queen contest
==============================================

- SecurityHeadersMiddleware: adds security headers to every response and
  marks API responses as non-cacheable (vote status and results are
  per-request and must never come from a shared cache)

The voter cookie is not handled here: the entry points that need a voter
identity opt in with contest.identity.with_voter_identity.
"""

from django.utils.deprecation import MiddlewareMixin  # pyright: ignore[reportMissingModuleSource]
import logging

logger = logging.getLogger(__name__)

API_PREFIX = '/api/'


class SecurityHeadersMiddleware(MiddlewareMixin):
    """
    Add security headers to all HTTP responses.

    Headers added:
    - X-Content-Type-Options: nosniff (prevent MIME sniffing)
    - Referrer-Policy: strict-origin-when-cross-origin
    - Permissions-Policy: no geolocation/microphone/camera
    - Cache-Control: no-store on /api/ responses
    """

    def process_response(self, request, response):
        response['X-Content-Type-Options'] = 'nosniff'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response['Permissions-Policy'] = (
            'geolocation=(), microphone=(), camera=()'
        )

        if request.path.startswith(API_PREFIX) and not response.has_header('Cache-Control'):
            response['Cache-Control'] = 'no-store'

        logger.debug("Security headers added to response")
        return response
