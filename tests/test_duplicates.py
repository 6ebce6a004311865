from types import SimpleNamespace

import pytest
from django.db import DatabaseError

from contest.duplicates import IDENTITY_CHECKS, find_prior_vote, has_voted
from contest.exceptions import TransientStoreFailure
from contest.identity import VoterIdentity
from contest.models import Vote


@pytest.fixture
def prior_vote(contestants):
    return Vote.objects.create(
        ip_address='203.0.113.7',
        cookie_token='cookie-a',
        fingerprint='fp-a',
        king=contestants['alice'],
        queen=contestants['cara'],
    )


def test_checks_run_fingerprint_first():
    assert [check.name for check in IDENTITY_CHECKS] == ['fingerprint', 'ip_cookie']


@pytest.mark.django_db
def test_fresh_identity_has_not_voted(prior_vote):
    assert find_prior_vote(VoterIdentity('198.51.100.1', 'cookie-b', 'fp-b')) is None


@pytest.mark.django_db
def test_fingerprint_match_survives_new_cookie_and_ip(prior_vote):
    prior = find_prior_vote(VoterIdentity('198.51.100.1', 'cookie-b', 'fp-a'))
    assert prior.matched_by == 'fingerprint'
    assert prior.vote == prior_vote


@pytest.mark.django_db
def test_ip_cookie_match_without_fingerprint(prior_vote):
    prior = find_prior_vote(VoterIdentity('203.0.113.7', 'cookie-a'))
    assert prior.matched_by == 'ip_cookie'


@pytest.mark.django_db
def test_ip_cookie_match_after_fingerprint_miss(prior_vote):
    prior = find_prior_vote(VoterIdentity('203.0.113.7', 'cookie-a', 'fp-new'))
    assert prior.matched_by == 'ip_cookie'


@pytest.mark.django_db
def test_same_cookie_from_other_ip_is_a_new_identity(prior_vote):
    assert not has_voted(VoterIdentity('198.51.100.1', 'cookie-a'))


@pytest.mark.django_db
def test_with_choices_loads_candidates(prior_vote, django_assert_num_queries):
    prior = find_prior_vote(VoterIdentity('203.0.113.7', 'cookie-a'), with_choices=True)
    with django_assert_num_queries(0):
        assert prior.vote.king.name == 'Alice'
        assert prior.vote.queen.name == 'Cara'


def test_store_error_is_not_reported_as_not_voted(monkeypatch):
    class BrokenManager:
        def all(self):
            raise DatabaseError('connection lost')

    monkeypatch.setattr('contest.duplicates.Vote', SimpleNamespace(objects=BrokenManager()))

    with pytest.raises(TransientStoreFailure):
        find_prior_vote(VoterIdentity('203.0.113.7', 'cookie-a', 'fp-a'))
