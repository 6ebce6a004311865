import pytest
from django.test import Client

from contest.auth import generate_token
from contest.identity import VoterIdentity
from contest.models import AdminAccount, Candidate


@pytest.fixture(autouse=True)
def test_settings(settings, tmp_path):
    settings.SECURE_SSL_REDIRECT = False
    settings.VOTE_REQUIRE_FINGERPRINT = True
    settings.TRUST_FORWARDED_FOR = True
    settings.MEDIA_ROOT = str(tmp_path / 'uploads')
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    return settings


@pytest.fixture
def contestants(db):
    """Alice and Bob run for king, Cara for queen."""
    return {
        'alice': Candidate.objects.create(name='Alice', category=Candidate.KING),
        'bob': Candidate.objects.create(name='Bob', category=Candidate.KING),
        'cara': Candidate.objects.create(name='Cara', category=Candidate.QUEEN),
    }


@pytest.fixture
def admin_account(db):
    admin = AdminAccount(email='Admin@Example.com', name='Admin')
    admin.set_password('secret123')
    admin.save()
    return admin


@pytest.fixture
def admin_headers(admin_account):
    return {'HTTP_AUTHORIZATION': f'Bearer {generate_token(admin_account.id)}'}


@pytest.fixture
def identity():
    return VoterIdentity('203.0.113.7', 'cookie-a', 'fp-a')


@pytest.fixture
def client_factory():
    """Separate browsers: each client keeps its own cookie jar."""
    return Client
