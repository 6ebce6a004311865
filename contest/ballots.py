"""
Vote commit
===========

cast_vote() is the only code path that writes a Vote. It checks, in order:

1. voting is open (read from the database on every call)
2. a fingerprint is present, when VOTE_REQUIRE_FINGERPRINT is on
3. the identity has not voted yet (advisory pre-check)
4. king/queen ids point at candidates of the right category

then inserts the Vote and bumps both counters in a single transaction. A
unique constraint violation on insert means a concurrent request from the
same identity won the race, and is reported as AlreadyVoted exactly like a
pre-check hit.
"""

import logging

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.db import DatabaseError, IntegrityError, transaction  # pyright: ignore[reportMissingModuleSource]
from django.db.models import F  # pyright: ignore[reportMissingModuleSource]

from . import settings_gate
from .duplicates import find_prior_vote
from .exceptions import (
    AlreadyVoted, FingerprintRequired, InvalidCandidate, TransientStoreFailure,
    VotingClosed,
)
from .identity import VoterIdentity
from .models import Candidate, Vote

logger = logging.getLogger(__name__)


def _get_candidate(candidate_id, category):
    return Candidate.objects.filter(id=candidate_id, category=category).first()


def cast_vote(identity: VoterIdentity, king_id: int, queen_id: int) -> Vote:
    """
    Record one ballot for identity.

    Returns:
        The created Vote

    Raises:
        VotingClosed, FingerprintRequired, AlreadyVoted, InvalidCandidate:
            nothing was written
        TransientStoreFailure: database error, nothing was written
    """
    logger.info(f"Vote attempt | IP: {identity.ip_address} | "
                f"Fingerprint: {identity.fingerprint} | Cookie: {identity.cookie_token}")

    if not settings_gate.voting_open():
        raise VotingClosed()

    if settings.VOTE_REQUIRE_FINGERPRINT and not identity.fingerprint:
        raise FingerprintRequired()

    prior = find_prior_vote(identity)
    if prior is not None:
        logger.warning(f"Duplicate vote blocked by {prior.matched_by} | "
                       f"Prior vote: {prior.vote.id}")
        if prior.matched_by == 'fingerprint':
            raise AlreadyVoted('You have already voted from this device', matched_by=prior.matched_by)
        raise AlreadyVoted(matched_by=prior.matched_by)

    try:
        king = _get_candidate(king_id, Candidate.KING)
        queen = _get_candidate(queen_id, Candidate.QUEEN)
    except DatabaseError as e:
        logger.error(f"Error loading candidates: {str(e)}")
        raise TransientStoreFailure() from e

    if king is None:
        raise InvalidCandidate('Invalid king candidate')
    if queen is None:
        raise InvalidCandidate('Invalid queen candidate')

    try:
        with transaction.atomic():
            vote = Vote.objects.create(
                ip_address=identity.ip_address,
                cookie_token=identity.cookie_token,
                fingerprint=identity.fingerprint,
                king=king,
                queen=queen,
            )
            updated = Candidate.objects.filter(
                id__in=[king.id, queen.id]
            ).update(vote_count=F('vote_count') + 1)

            if updated != 2:
                # A candidate disappeared between validation and commit
                raise InvalidCandidate('Candidate no longer exists')

    except IntegrityError as e:
        # Unique constraint on fingerprint or (ip_address, cookie_token)
        logger.warning(f"IntegrityError during vote (concurrent duplicate): {str(e)}")
        raise AlreadyVoted() from e

    except DatabaseError as e:
        logger.error(f"Error recording vote: {str(e)}")
        raise TransientStoreFailure() from e

    logger.info(f"Vote recorded: {vote.id} | King: {king.id} | Queen: {queen.id}")
    return vote
