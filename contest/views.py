"""
View functions for the King & Queen contest API
===============================================

JSON handlers for:
- Checking vote status and submitting ballots (voter cookie identity)
- Reading results and the leading candidates
- Listing and managing candidates, uploading photos
- Admin login/registration and the voting/results settings
- Health check

Security implemented:
- Admin endpoints require a JWT bearer token (see auth.py)
- Vote deduplication (fingerprint, then IP + cookie), backed by DB constraints
- Input validation through Django forms
- CSRF is not used: admin writes carry a bearer token, and voter writes are
  protected by the duplicate constraints rather than by session state
"""

import json
import logging
import random
import time

from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.core.files.storage import default_storage  # pyright: ignore[reportMissingModuleSource]
from django.db import DatabaseError  # pyright: ignore[reportMissingModuleSource]
from django.db.models import ProtectedError, Q  # pyright: ignore[reportMissingModuleSource]
from django.http import JsonResponse  # pyright: ignore[reportMissingModuleSource]
from django.utils import timezone  # pyright: ignore[reportMissingModuleSource]
from django.views.decorators.csrf import csrf_exempt  # pyright: ignore[reportMissingModuleSource]
from django.views.decorators.http import require_http_methods  # pyright: ignore[reportMissingModuleSource]

from . import settings_gate, tally
from .auth import admin_required, generate_token, get_request_admin
from .ballots import cast_vote
from .duplicates import find_prior_vote
from .exceptions import AlreadyVoted, TransientStoreFailure, VoteRejected, VotingClosed
from .forms import (
    AdminLoginForm, AdminRegisterForm, CandidateForm, PasswordChangeForm,
    PhotoUploadForm, VoteForm, first_error,
)
from .identity import with_voter_identity
from .models import AdminAccount, Candidate, Vote

logger = logging.getLogger(__name__)


class BadRequest(Exception):
    pass


def _parse_json(request):
    """Decode a JSON object body. Empty body is an empty object."""
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise BadRequest('Invalid JSON body')
    if not isinstance(payload, dict):
        raise BadRequest('JSON body must be an object')
    return payload


def _error(message, status, **extra):
    return JsonResponse({'error': message, **extra}, status=status)


def _store_failure(message='Please try again'):
    return _error(message, TransientStoreFailure.status, retryable=True)


def _choice(candidate):
    return {'id': candidate.id, 'name': candidate.name}


# ---------------------------------------------------------------------------
# Voting
# ---------------------------------------------------------------------------

@require_http_methods(["GET"])
@with_voter_identity
def check_vote(request):
    """
    Report whether the requesting voter has already voted.

    Query params:
        fingerprint: optional device fingerprint

    A voter without a cookie gets one on this response.

    Returns:
        JSON: {'hasVoted': false} or
              {'hasVoted': true, 'votedAt', 'votedFor': {king, queen}, 'matchedBy'}
    """
    identity = request.voter_identity.with_fingerprint(request.GET.get('fingerprint'))

    if identity.fingerprint and len(identity.fingerprint) > 255:
        return _error('Invalid fingerprint', 400)

    try:
        prior = find_prior_vote(identity, with_choices=True)
    except TransientStoreFailure:
        return _store_failure('Failed to check vote status')

    if prior is None:
        return JsonResponse({'hasVoted': False})

    return JsonResponse({
        'hasVoted': True,
        'votedAt': prior.vote.voted_at.isoformat(),
        'votedFor': {
            'king': _choice(prior.vote.king),
            'queen': _choice(prior.vote.queen),
        },
        'matchedBy': prior.matched_by,
    })


@csrf_exempt
@require_http_methods(["POST"])
@with_voter_identity
def submit_vote(request):
    """
    Submit a ballot for one king and one queen.

    Body:
        {'kingId': int, 'queenId': int, 'fingerprint': str}

    Returns:
        201 on success; 403 already voted / voting closed; 400 invalid
        ballot; 503 when the database failed (safe to retry)
    """
    try:
        payload = _parse_json(request)
    except BadRequest as e:
        return _error(str(e), 400)

    form = VoteForm({
        'king_id': payload.get('kingId'),
        'queen_id': payload.get('queenId'),
        'fingerprint': payload.get('fingerprint'),
    })
    if not form.is_valid():
        return _error(first_error(form), 400)

    identity = request.voter_identity.with_fingerprint(form.cleaned_data['fingerprint'])

    try:
        cast_vote(identity, form.cleaned_data['king_id'], form.cleaned_data['queen_id'])

    except AlreadyVoted as e:
        return _error(e.message, e.status, alreadyVoted=True)

    except VotingClosed as e:
        return _error(e.message, e.status, votingClosed=True)

    except VoteRejected as e:
        return _error(e.message, e.status)

    except TransientStoreFailure:
        return _store_failure('Failed to submit vote, please try again')

    return JsonResponse({'success': True, 'message': 'Vote submitted successfully'}, status=201)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def _results_hidden(request):
    """
    Public readers only see results once announced; admins always do.
    Returns an error response, or None when the caller may read.
    """
    if settings_gate.results_announced():
        return None
    try:
        admin, _ = get_request_admin(request)
    except DatabaseError as e:
        logger.error(f"Error loading admin for results: {str(e)}")
        raise TransientStoreFailure() from e
    if admin is not None:
        return None
    return _error('Results have not been announced yet', 403, announced=False)


@require_http_methods(["GET"])
def results(request):
    """
    Vote counts for all candidates.

    Returns:
        JSON: {'kings': [...], 'queens': [...], 'totalVotes', 'timestamp'}
        with candidates ranked and carrying a 'percentage'
    """
    try:
        hidden = _results_hidden(request)
        if hidden is not None:
            return hidden
        return JsonResponse(tally.get_results())
    except TransientStoreFailure:
        return _store_failure('Failed to fetch results')


@require_http_methods(["GET"])
def results_summary(request):
    """Leading king and queen plus the total."""
    try:
        hidden = _results_hidden(request)
        if hidden is not None:
            return hidden
        return JsonResponse(tally.get_summary())
    except TransientStoreFailure:
        return _store_failure('Failed to fetch summary')


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------

@csrf_exempt
@require_http_methods(["GET", "POST"])
def candidates(request):
    """
    GET: all candidates grouped by category, ordered by id
    POST (admin): create a candidate from {name, category, photoUrl}
    """
    if request.method == 'POST':
        return create_candidate(request)

    all_candidates = [c.to_dict() for c in Candidate.objects.order_by('id')]
    return JsonResponse({
        'kings': [c for c in all_candidates if c['category'] == Candidate.KING],
        'queens': [c for c in all_candidates if c['category'] == Candidate.QUEEN],
    })


@admin_required
def create_candidate(request):
    try:
        payload = _parse_json(request)
    except BadRequest as e:
        return _error(str(e), 400)

    form = CandidateForm({
        'name': payload.get('name'),
        'category': payload.get('category'),
        'photo_url': payload.get('photoUrl'),
    })
    if not form.is_valid():
        return _error(first_error(form), 400)

    candidate = form.save()
    logger.info(f"Candidate created: {candidate.id} {candidate.name} ({candidate.category}) "
                f"by {request.admin.email}")

    return JsonResponse({
        'success': True,
        'message': 'Candidate created successfully',
        'candidate': candidate.to_dict(),
    }, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
def candidate_detail(request, candidate_id):
    """
    GET: one candidate
    PUT (admin): partial update of name/category/photoUrl
    DELETE (admin): remove a candidate nobody voted for
    """
    if request.method == 'PUT':
        return update_candidate(request, candidate_id)
    if request.method == 'DELETE':
        return delete_candidate(request, candidate_id)

    candidate = Candidate.objects.filter(id=candidate_id).first()
    if candidate is None:
        return _error('Candidate not found', 404)
    return JsonResponse(candidate.to_dict())


@admin_required
def update_candidate(request, candidate_id):
    candidate = Candidate.objects.filter(id=candidate_id).first()
    if candidate is None:
        return _error('Candidate not found', 404)

    try:
        payload = _parse_json(request)
    except BadRequest as e:
        return _error(str(e), 400)

    current_category = candidate.category

    # Fields absent from the payload keep their current value
    form = CandidateForm({
        'name': payload.get('name', candidate.name),
        'category': payload.get('category', candidate.category),
        'photo_url': payload.get('photoUrl', candidate.photo_url),
    }, instance=candidate)
    if not form.is_valid():
        return _error(first_error(form), 400)

    # Ballots name a king and a queen; moving a voted-for candidate would
    # leave a ballot counted twice in one category
    if (form.cleaned_data['category'] != current_category
            and Vote.objects.filter(Q(king_id=candidate_id) | Q(queen_id=candidate_id)).exists()):
        return _error('Candidate has votes and cannot change category', 409)

    candidate = form.save()
    logger.info(f"Candidate updated: {candidate.id} by {request.admin.email}")

    return JsonResponse({
        'success': True,
        'message': 'Candidate updated successfully',
        'candidate': candidate.to_dict(),
    })


@admin_required
def delete_candidate(request, candidate_id):
    candidate = Candidate.objects.filter(id=candidate_id).first()
    if candidate is None:
        return _error('Candidate not found', 404)

    try:
        candidate.delete()
    except ProtectedError:
        return _error('Candidate has votes and cannot be deleted', 409)

    logger.info(f"Candidate deleted: {candidate_id} by {request.admin.email}")
    return JsonResponse({'success': True, 'message': 'Candidate deleted successfully'})


@csrf_exempt
@require_http_methods(["POST"])
@admin_required
def upload_photo(request):
    """
    Upload a candidate photo (multipart field 'photo').

    With 'candidateId' the candidate's photo is replaced and the old file
    removed; otherwise the stored path is only returned.
    """
    form = PhotoUploadForm({'candidate_id': request.POST.get('candidateId')}, request.FILES)
    if not form.is_valid():
        return _error(first_error(form), 400)

    filename = (f"candidate-{int(time.time() * 1000)}-"
                f"{random.randint(0, 10 ** 9)}{form.photo_extension()}")
    stored_name = default_storage.save(f"candidates/{filename}", form.cleaned_data['photo'])
    photo_url = f"{settings.MEDIA_URL}{stored_name}"

    candidate_id = form.cleaned_data.get('candidate_id')
    if not candidate_id:
        return JsonResponse({
            'success': True,
            'message': 'Photo uploaded successfully',
            'url': photo_url,
            'photoUrl': photo_url,
            'filename': stored_name.rsplit('/', 1)[-1],
        })

    candidate = Candidate.objects.filter(id=candidate_id).first()
    if candidate is None:
        default_storage.delete(stored_name)
        return _error('Candidate not found', 404)

    old_photo = candidate.photo_url
    candidate.photo_url = photo_url
    try:
        candidate.save(update_fields=['photo_url', 'updated_at'])
    except DatabaseError as e:
        logger.error(f"Error saving photo for candidate {candidate.id}: {str(e)}")
        default_storage.delete(stored_name)
        return _store_failure('Failed to update candidate photo')

    if old_photo and old_photo.startswith(settings.MEDIA_URL):
        old_name = old_photo[len(settings.MEDIA_URL):]
        if default_storage.exists(old_name):
            default_storage.delete(old_name)

    logger.info(f"Photo uploaded for candidate {candidate.id}: {stored_name}")
    return JsonResponse({
        'success': True,
        'message': 'Photo uploaded and candidate updated',
        'url': photo_url,
        'photoUrl': photo_url,
        'candidateId': candidate.id,
    })


# ---------------------------------------------------------------------------
# Admin accounts
# ---------------------------------------------------------------------------

@csrf_exempt
@require_http_methods(["POST"])
def admin_login(request):
    """Exchange email + password for a bearer token."""
    try:
        payload = _parse_json(request)
    except BadRequest as e:
        return _error(str(e), 400)

    form = AdminLoginForm({'email': payload.get('email'), 'password': payload.get('password')})
    if not form.is_valid():
        return _error(first_error(form), 400)

    admin = AdminAccount.objects.filter(email=form.cleaned_data['email']).first()
    if admin is None or not admin.check_password(form.cleaned_data['password']):
        logger.warning(f"Failed admin login for {form.cleaned_data['email']}")
        return _error('Invalid email or password', 401)

    logger.info(f"Admin logged in: {admin.email}")
    return JsonResponse({
        'success': True,
        'token': generate_token(admin.id),
        'admin': {'id': admin.id, 'email': admin.email, 'name': admin.name},
    })


@csrf_exempt
@require_http_methods(["POST"])
@admin_required
def admin_register(request):
    """Create another admin account (admins only)."""
    try:
        payload = _parse_json(request)
    except BadRequest as e:
        return _error(str(e), 400)

    form = AdminRegisterForm({
        'email': payload.get('email'),
        'password': payload.get('password'),
        'name': payload.get('name'),
    })
    if not form.is_valid():
        return _error(first_error(form), 400)

    admin = AdminAccount(email=form.cleaned_data['email'], name=form.cleaned_data['name'])
    admin.set_password(form.cleaned_data['password'])
    admin.save()

    logger.info(f"Admin created: {admin.email} by {request.admin.email}")
    return JsonResponse({
        'success': True,
        'message': 'Admin created successfully',
        'admin': admin.to_dict(),
    }, status=201)


@require_http_methods(["GET"])
@admin_required
def admin_me(request):
    return JsonResponse({'admin': {
        'id': request.admin.id,
        'email': request.admin.email,
        'name': request.admin.name,
    }})


@csrf_exempt
@require_http_methods(["PUT"])
@admin_required
def admin_password(request):
    """Change the current admin's password after verifying the old one."""
    try:
        payload = _parse_json(request)
    except BadRequest as e:
        return _error(str(e), 400)

    form = PasswordChangeForm({
        'current_password': payload.get('currentPassword'),
        'new_password': payload.get('newPassword'),
    })
    if not form.is_valid():
        return _error(first_error(form), 400)

    admin = request.admin
    if not admin.check_password(form.cleaned_data['current_password']):
        return _error('Current password is incorrect', 401)

    admin.set_password(form.cleaned_data['new_password'])
    admin.save(update_fields=['password'])

    logger.info(f"Password changed for admin {admin.email}")
    return JsonResponse({'success': True, 'message': 'Password updated successfully'})


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@require_http_methods(["GET"])
@admin_required
def settings_overview(request):
    try:
        return JsonResponse({
            'resultsAnnounced': settings_gate.results_announced(),
            'votingOpen': settings_gate.voting_open(),
        })
    except TransientStoreFailure:
        return _store_failure('Failed to fetch settings')


def _flag_endpoint(request, key, wire_name, on_message, off_message):
    """GET the flag publicly, PUT it as admin with {wire_name: bool}."""
    try:
        if request.method == 'GET':
            return JsonResponse({wire_name: settings_gate.get_flag(key)})

        admin, error = get_request_admin(request)
        if admin is None:
            return _error(error, 401)

        try:
            payload = _parse_json(request)
        except BadRequest as e:
            return _error(str(e), 400)

        value = payload.get(wire_name)
        if not isinstance(value, bool):
            return _error(f'{wire_name} must be a boolean', 400)

        settings_gate.set_flag(key, value)
        logger.info(f"{key} set to {value} by {admin.email}")
        return JsonResponse({
            'success': True,
            wire_name: value,
            'message': on_message if value else off_message,
        })
    except TransientStoreFailure:
        return _store_failure(f'Failed to update {key}' if request.method == 'PUT'
                              else f'Failed to check {key}')


@csrf_exempt
@require_http_methods(["GET", "PUT"])
def voting_open_setting(request):
    return _flag_endpoint(request, settings_gate.VOTING_OPEN, 'open',
                          'Voting is now open!', 'Voting has been closed.')


@csrf_exempt
@require_http_methods(["GET", "PUT"])
def results_announced_setting(request):
    return _flag_endpoint(request, settings_gate.RESULTS_ANNOUNCED, 'announced',
                          'Results have been announced!',
                          'Results announcement has been hidden.')


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@require_http_methods(["GET"])
def health(request):
    return JsonResponse({'status': 'ok', 'timestamp': timezone.now().isoformat()})
