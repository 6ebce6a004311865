"""
Duplicate vote detection.

Each entry of IDENTITY_CHECKS maps a voter identity to a Vote lookup. They are
tried in order and the first hit wins:

1. fingerprint: survives cookie clearing and IP changes
2. ip_cookie: the (ip_address, cookie_token) pair

Both lookups mirror a unique constraint on Vote, so this module only
short-circuits what the database would reject anyway. It is read-only and
takes no locks.
"""

from typing import Callable, NamedTuple, Optional
import logging

from django.db import DatabaseError  # pyright: ignore[reportMissingModuleSource]

from .exceptions import TransientStoreFailure
from .identity import VoterIdentity
from .models import Vote

logger = logging.getLogger(__name__)


class IdentityCheck(NamedTuple):
    name: str
    key: Callable[[VoterIdentity], Optional[dict]]


class PriorVote(NamedTuple):
    matched_by: str
    vote: Vote


def _fingerprint_key(identity):
    if not identity.fingerprint:
        return None
    return {'fingerprint': identity.fingerprint}


def _ip_cookie_key(identity):
    return {'ip_address': identity.ip_address, 'cookie_token': identity.cookie_token}


IDENTITY_CHECKS = (
    IdentityCheck('fingerprint', _fingerprint_key),
    IdentityCheck('ip_cookie', _ip_cookie_key),
)


def find_prior_vote(identity: VoterIdentity, with_choices: bool = False) -> Optional[PriorVote]:
    """
    Return the vote already cast by this identity, or None.

    Args:
        identity: Resolved voter identity
        with_choices: Also load the chosen king and queen

    Raises:
        TransientStoreFailure: the lookup itself failed. Never reported
            as "not voted".
    """
    try:
        queryset = Vote.objects.all()
        if with_choices:
            queryset = queryset.select_related('king', 'queen')

        for check in IDENTITY_CHECKS:
            lookup = check.key(identity)
            if lookup is None:
                continue
            vote = queryset.filter(**lookup).first()
            if vote is not None:
                logger.info(f"Prior vote {vote.id} matched by {check.name} | "
                            f"IP: {identity.ip_address} | Cookie: {identity.cookie_token}")
                return PriorVote(check.name, vote)
    except DatabaseError as e:
        logger.error(f"Error checking vote status: {str(e)}")
        raise TransientStoreFailure() from e

    return None


def has_voted(identity: VoterIdentity) -> bool:
    return find_prior_vote(identity) is not None
