from types import SimpleNamespace

import pytest
from django.db import OperationalError

from contest import settings_gate
from contest.ballots import cast_vote
from contest.exceptions import (
    AlreadyVoted, FingerprintRequired, InvalidCandidate, TransientStoreFailure,
    VotingClosed,
)
from contest.identity import VoterIdentity
from contest.models import Candidate, Vote


def counts(contestants):
    for candidate in contestants.values():
        candidate.refresh_from_db()
    return {key: candidate.vote_count for key, candidate in contestants.items()}


@pytest.mark.django_db
def test_vote_increments_both_counters(contestants, identity):
    vote = cast_vote(identity, contestants['alice'].id, contestants['cara'].id)

    assert vote.fingerprint == 'fp-a'
    assert vote.ip_address == '203.0.113.7'
    assert vote.cookie_token == 'cookie-a'
    assert counts(contestants) == {'alice': 1, 'bob': 0, 'cara': 1}


@pytest.mark.django_db
def test_second_vote_same_identity_is_rejected(contestants, identity):
    cast_vote(identity, contestants['alice'].id, contestants['cara'].id)

    with pytest.raises(AlreadyVoted) as excinfo:
        cast_vote(identity, contestants['bob'].id, contestants['cara'].id)

    assert excinfo.value.matched_by == 'fingerprint'
    assert Vote.objects.count() == 1
    assert counts(contestants) == {'alice': 1, 'bob': 0, 'cara': 1}


@pytest.mark.django_db
def test_repeated_attempts_keep_returning_already_voted(contestants, identity):
    cast_vote(identity, contestants['alice'].id, contestants['cara'].id)
    for _ in range(3):
        with pytest.raises(AlreadyVoted):
            cast_vote(identity, contestants['alice'].id, contestants['cara'].id)
    assert Vote.objects.count() == 1


@pytest.mark.django_db
def test_fingerprint_blocks_after_cookie_reset(contestants, identity):
    cast_vote(identity, contestants['alice'].id, contestants['cara'].id)

    with pytest.raises(AlreadyVoted):
        cast_vote(VoterIdentity('198.51.100.9', 'cookie-new', 'fp-a'),
                  contestants['bob'].id, contestants['cara'].id)


@pytest.mark.django_db
def test_ip_cookie_blocks_new_fingerprint(contestants, identity):
    cast_vote(identity, contestants['alice'].id, contestants['cara'].id)

    with pytest.raises(AlreadyVoted) as excinfo:
        cast_vote(identity._replace(fingerprint='fp-other'),
                  contestants['bob'].id, contestants['cara'].id)
    assert excinfo.value.matched_by == 'ip_cookie'


@pytest.mark.django_db
def test_concurrent_duplicate_rejected_by_constraint(contestants, identity, monkeypatch):
    # Both requests pass the pre-check before either commits
    monkeypatch.setattr('contest.ballots.find_prior_vote', lambda identity: None)

    cast_vote(identity, contestants['alice'].id, contestants['cara'].id)
    with pytest.raises(AlreadyVoted):
        cast_vote(VoterIdentity('198.51.100.9', 'cookie-b', 'fp-a'),
                  contestants['bob'].id, contestants['cara'].id)

    assert Vote.objects.count() == 1
    assert counts(contestants) == {'alice': 1, 'bob': 0, 'cara': 1}


@pytest.mark.django_db
def test_concurrent_ip_cookie_duplicate_rejected_by_constraint(contestants, settings, monkeypatch):
    settings.VOTE_REQUIRE_FINGERPRINT = False
    monkeypatch.setattr('contest.ballots.find_prior_vote', lambda identity: None)
    identity = VoterIdentity('203.0.113.7', 'cookie-a')

    cast_vote(identity, contestants['alice'].id, contestants['cara'].id)
    with pytest.raises(AlreadyVoted):
        cast_vote(identity, contestants['alice'].id, contestants['cara'].id)

    assert counts(contestants) == {'alice': 1, 'bob': 0, 'cara': 1}


@pytest.mark.django_db
def test_distinct_identities_each_count(contestants):
    for n in range(3):
        cast_vote(VoterIdentity(f'10.0.0.{n}', f'cookie-{n}', f'fp-{n}'),
                  contestants['bob'].id, contestants['cara'].id)

    assert counts(contestants) == {'alice': 0, 'bob': 3, 'cara': 3}
    assert Vote.objects.count() == 3


@pytest.mark.django_db
def test_voting_closed(contestants, identity):
    settings_gate.set_voting_open(False)

    with pytest.raises(VotingClosed):
        cast_vote(identity, contestants['alice'].id, contestants['cara'].id)

    assert Vote.objects.count() == 0
    assert counts(contestants) == {'alice': 0, 'bob': 0, 'cara': 0}


@pytest.mark.django_db
def test_closing_takes_effect_on_next_submit(contestants):
    cast_vote(VoterIdentity('10.0.0.1', 'c1', 'f1'), contestants['alice'].id, contestants['cara'].id)
    settings_gate.set_voting_open(False)

    with pytest.raises(VotingClosed):
        cast_vote(VoterIdentity('10.0.0.2', 'c2', 'f2'), contestants['alice'].id, contestants['cara'].id)


@pytest.mark.django_db
def test_king_id_pointing_at_queen_is_invalid(contestants, identity):
    with pytest.raises(InvalidCandidate):
        cast_vote(identity, contestants['cara'].id, contestants['cara'].id)

    assert Vote.objects.count() == 0
    assert counts(contestants) == {'alice': 0, 'bob': 0, 'cara': 0}


@pytest.mark.django_db
def test_missing_queen_is_invalid(contestants, identity):
    with pytest.raises(InvalidCandidate):
        cast_vote(identity, contestants['alice'].id, 999)
    assert Vote.objects.count() == 0


@pytest.mark.django_db
def test_fingerprint_required_by_default(contestants):
    with pytest.raises(FingerprintRequired):
        cast_vote(VoterIdentity('10.0.0.1', 'cookie-a'), contestants['alice'].id, contestants['cara'].id)
    assert Vote.objects.count() == 0


@pytest.mark.django_db
def test_fingerprint_optional_mode(contestants, settings):
    settings.VOTE_REQUIRE_FINGERPRINT = False

    vote = cast_vote(VoterIdentity('10.0.0.1', 'cookie-a'), contestants['alice'].id, contestants['cara'].id)

    assert vote.fingerprint is None


@pytest.mark.django_db
def test_fingerprintless_votes_do_not_collide(contestants, settings):
    settings.VOTE_REQUIRE_FINGERPRINT = False

    cast_vote(VoterIdentity('10.0.0.1', 'cookie-a'), contestants['alice'].id, contestants['cara'].id)
    cast_vote(VoterIdentity('10.0.0.2', 'cookie-b'), contestants['bob'].id, contestants['cara'].id)

    assert Vote.objects.count() == 2


@pytest.mark.django_db
def test_partial_commit_is_rolled_back(contestants, identity, monkeypatch):
    # King validated, then gone before the counter update
    ghost = Candidate(id=424242, name='Ghost', category=Candidate.KING)
    real_lookup = Candidate.objects.filter

    def lookup(candidate_id, category):
        if category == Candidate.KING:
            return ghost
        return real_lookup(id=candidate_id, category=category).first()

    monkeypatch.setattr('contest.ballots._get_candidate', lookup)

    with pytest.raises(InvalidCandidate):
        cast_vote(identity, ghost.id, contestants['cara'].id)

    assert Vote.objects.count() == 0
    assert counts(contestants) == {'alice': 0, 'bob': 0, 'cara': 0}


@pytest.mark.django_db
def test_store_failure_on_insert_is_transient(contestants, identity, monkeypatch):
    def broken_create(**kwargs):
        raise OperationalError('database is locked')

    monkeypatch.setattr('contest.ballots.Vote', SimpleNamespace(objects=SimpleNamespace(create=broken_create)))

    with pytest.raises(TransientStoreFailure):
        cast_vote(identity, contestants['alice'].id, contestants['cara'].id)

    assert counts(contestants) == {'alice': 0, 'bob': 0, 'cara': 0}
