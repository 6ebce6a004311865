import pytest
from contest import settings_gate
from contest.identity import VOTER_COOKIE_NAME
from contest.models import Vote

VOTE_URL = '/api/vote'
CHECK_URL = '/api/check'
RESULTS_URL = '/api/results'


def post_vote(client, **body):
    return client.post(VOTE_URL, body, content_type='application/json')


def by_name(entries):
    return {entry['name']: (entry['voteCount'], entry['percentage']) for entry in entries}


@pytest.mark.django_db
def test_alice_cara_scenario(client, contestants):
    alice, bob, cara = contestants['alice'], contestants['bob'], contestants['cara']

    response = post_vote(client, kingId=alice.id, queenId=cara.id, fingerprint='fp-a')
    assert response.status_code == 201
    assert response.json()['success'] is True

    settings_gate.set_results_announced(True)
    results = client.get(RESULTS_URL).json()
    assert by_name(results['kings']) == {'Alice': (1, 100.0), 'Bob': (0, 0.0)}
    assert by_name(results['queens']) == {'Cara': (1, 100.0)}
    assert [entry['name'] for entry in results['kings']] == ['Alice', 'Bob']
    assert results['totalVotes'] == 1

    response = post_vote(client, kingId=bob.id, queenId=cara.id, fingerprint='fp-a')
    assert response.status_code == 403
    assert response.json()['alreadyVoted'] is True

    results = client.get(RESULTS_URL).json()
    assert by_name(results['kings']) == {'Alice': (1, 100.0), 'Bob': (0, 0.0)}
    assert results['totalVotes'] == 1


@pytest.mark.django_db
def test_fingerprint_blocks_other_browser(client_factory, contestants):
    alice, cara = contestants['alice'], contestants['cara']

    first, second = client_factory(), client_factory()
    assert post_vote(first, kingId=alice.id, queenId=cara.id, fingerprint='fp-a').status_code == 201

    response = post_vote(second, kingId=alice.id, queenId=cara.id, fingerprint='fp-a')
    assert response.status_code == 403
    assert response.json()['error'] == 'You have already voted from this device'


@pytest.mark.django_db
def test_cookie_round_trip_without_fingerprint(client, contestants, settings):
    settings.VOTE_REQUIRE_FINGERPRINT = False
    alice, cara = contestants['alice'], contestants['cara']

    response = client.get(CHECK_URL)
    assert response.json() == {'hasVoted': False}
    token = response.cookies[VOTER_COOKIE_NAME].value

    response = post_vote(client, kingId=alice.id, queenId=cara.id)
    assert response.status_code == 201
    assert VOTER_COOKIE_NAME not in response.cookies
    assert Vote.objects.get().cookie_token == token

    response = post_vote(client, kingId=alice.id, queenId=cara.id)
    assert response.status_code == 403
    assert response.json()['alreadyVoted'] is True
    assert Vote.objects.count() == 1


@pytest.mark.django_db
def test_submit_without_cookie_mints_one(client, contestants):
    response = post_vote(client, kingId=contestants['alice'].id,
                         queenId=contestants['cara'].id, fingerprint='fp-a')

    assert response.status_code == 201
    assert response.cookies[VOTER_COOKIE_NAME].value == Vote.objects.get().cookie_token


@pytest.mark.django_db
def test_forwarded_ip_is_recorded(client, contestants):
    client.post(VOTE_URL, {'kingId': contestants['alice'].id, 'queenId': contestants['cara'].id,
                           'fingerprint': 'fp-a'},
                content_type='application/json', HTTP_X_FORWARDED_FOR='198.51.100.4, 10.0.0.1')
    assert Vote.objects.get().ip_address == '198.51.100.4'


@pytest.mark.django_db
def test_voting_closed(client, contestants):
    settings_gate.set_voting_open(False)

    response = post_vote(client, kingId=contestants['alice'].id,
                         queenId=contestants['cara'].id, fingerprint='fp-a')

    assert response.status_code == 403
    assert response.json()['votingClosed'] is True
    assert Vote.objects.count() == 0


@pytest.mark.django_db
def test_king_id_pointing_at_queen(client, contestants):
    response = post_vote(client, kingId=contestants['cara'].id,
                         queenId=contestants['cara'].id, fingerprint='fp-a')

    assert response.status_code == 400
    assert response.json()['error'] == 'Invalid king candidate'
    assert Vote.objects.count() == 0
    contestants['cara'].refresh_from_db()
    assert contestants['cara'].vote_count == 0


@pytest.mark.django_db
@pytest.mark.parametrize('body, message', [
    ({'queenId': 3, 'fingerprint': 'fp'}, 'Both kingId and queenId are required'),
    ({'kingId': 1, 'fingerprint': 'fp'}, 'Both kingId and queenId are required'),
    ({'kingId': 1, 'queenId': 3}, 'Device fingerprint is required'),
    ({'kingId': 1, 'queenId': 3, 'fingerprint': '   '}, 'Device fingerprint is required'),
])
def test_incomplete_ballots(client, contestants, body, message):
    response = post_vote(client, **body)
    assert response.status_code == 400
    assert response.json()['error'] == message


@pytest.mark.django_db
def test_invalid_json(client):
    response = client.post(VOTE_URL, 'not json', content_type='application/json')
    assert response.status_code == 400


@pytest.mark.django_db
def test_store_failure_is_retryable(client, contestants, monkeypatch):
    from contest.exceptions import TransientStoreFailure

    def broken(identity, king_id, queen_id):
        raise TransientStoreFailure()

    monkeypatch.setattr('contest.views.cast_vote', broken)

    response = post_vote(client, kingId=contestants['alice'].id,
                         queenId=contestants['cara'].id, fingerprint='fp-a')

    assert response.status_code == 503
    assert response.json()['retryable'] is True


@pytest.mark.django_db
def test_check_sets_cookie_once(client):
    first = client.get(CHECK_URL)
    second = client.get(CHECK_URL)

    assert VOTER_COOKIE_NAME in first.cookies
    assert VOTER_COOKIE_NAME not in second.cookies


@pytest.mark.django_db
def test_check_reports_prior_choices(client, contestants):
    post_vote(client, kingId=contestants['bob'].id, queenId=contestants['cara'].id, fingerprint='fp-a')

    data = client.get(CHECK_URL).json()

    assert data['hasVoted'] is True
    assert data['matchedBy'] == 'ip_cookie'
    assert data['votedFor'] == {
        'king': {'id': contestants['bob'].id, 'name': 'Bob'},
        'queen': {'id': contestants['cara'].id, 'name': 'Cara'},
    }
    assert data['votedAt']


@pytest.mark.django_db
def test_check_by_fingerprint_from_new_browser(client_factory, contestants):
    post_vote(client_factory(), kingId=contestants['alice'].id,
              queenId=contestants['cara'].id, fingerprint='fp-a')

    fresh = client_factory()
    assert fresh.get(CHECK_URL).json()['hasVoted'] is False
    data = fresh.get(CHECK_URL, {'fingerprint': 'fp-a'}).json()
    assert data['hasVoted'] is True
    assert data['matchedBy'] == 'fingerprint'


@pytest.mark.django_db
def test_check_store_failure(client, monkeypatch):
    from contest.exceptions import TransientStoreFailure

    def broken(identity, with_choices=False):
        raise TransientStoreFailure()

    monkeypatch.setattr('contest.views.find_prior_vote', broken)

    response = client.get(CHECK_URL)
    assert response.status_code == 503
    assert VOTER_COOKIE_NAME in response.cookies


@pytest.mark.django_db
def test_api_responses_not_cached(client):
    assert client.get(CHECK_URL)['Cache-Control'] == 'no-store'


@pytest.mark.django_db
def test_oversized_forwarded_ip_is_stored_truncated(client, contestants):
    response = client.post(VOTE_URL, {'kingId': contestants['alice'].id, 'queenId': contestants['cara'].id,
                                      'fingerprint': 'fp-a'},
                           content_type='application/json', HTTP_X_FORWARDED_FOR='a' * 100)

    assert response.status_code == 201
    assert Vote.objects.get().ip_address == 'a' * 64
