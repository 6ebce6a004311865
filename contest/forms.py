"""
Django Forms for the King & Queen contest
=========================================

Validate the JSON and multipart payloads of the API:
- Submitting a ballot
- Creating/editing candidates and uploading their photos
- Admin login, registration and password change

Views translate camelCase wire keys to the snake_case field names below.
"""

import os

from django import forms  # pyright: ignore[reportMissingModuleSource]
from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.core.exceptions import ValidationError  # pyright: ignore[reportMissingModuleSource]

from .models import AdminAccount, Candidate

ALLOWED_PHOTO_TYPES = ('image/jpeg', 'image/jpg', 'image/png', 'image/webp')
MIN_PASSWORD_LENGTH = 6


def first_error(form):
    """First validation message of a bound form, for a one-line JSON error."""
    for errors in form.errors.values():
        for error in errors:
            return error
    return 'Invalid request'


class VoteForm(forms.Form):
    """
    A ballot: one king id, one queen id, optional device fingerprint.

    Whether the fingerprint is mandatory is decided by the commit service,
    not here, so both deployment modes share this form.
    """

    king_id = forms.IntegerField(
        min_value=1,
        error_messages={'required': 'Both kingId and queenId are required'},
    )
    queen_id = forms.IntegerField(
        min_value=1,
        error_messages={'required': 'Both kingId and queenId are required'},
    )
    fingerprint = forms.CharField(max_length=255, required=False)

    def clean_fingerprint(self):
        return self.cleaned_data.get('fingerprint', '').strip() or None


class CandidateForm(forms.ModelForm):
    """Create or edit a candidate."""

    class Meta:
        model = Candidate
        fields = ['name', 'category', 'photo_url']
        error_messages = {
            'name': {'required': 'Name and category are required'},
            'category': {
                'required': 'Name and category are required',
                'invalid_choice': 'Category must be either "king" or "queen"',
            },
        }

    def clean_name(self):
        name = self.cleaned_data.get('name', '').strip()
        if not name:
            raise ValidationError('Name and category are required')
        return name

    def clean_photo_url(self):
        return self.cleaned_data.get('photo_url') or None


class PhotoUploadForm(forms.Form):
    """Candidate photo: JPEG, PNG or WEBP up to PHOTO_MAX_UPLOAD_SIZE bytes."""

    photo = forms.FileField(error_messages={'required': 'No file uploaded'})
    candidate_id = forms.IntegerField(required=False, min_value=1)

    def clean_photo(self):
        photo = self.cleaned_data['photo']

        if photo.content_type not in ALLOWED_PHOTO_TYPES:
            raise ValidationError('Only JPEG, PNG, and WEBP images are allowed')

        max_size = settings.PHOTO_MAX_UPLOAD_SIZE
        if photo.size > max_size:
            raise ValidationError(f'File size exceeds {max_size // (1024 * 1024)}MB limit')

        return photo

    def photo_extension(self):
        return os.path.splitext(self.cleaned_data['photo'].name)[1].lower()


class AdminLoginForm(forms.Form):
    email = forms.CharField(error_messages={'required': 'Email and password are required'})
    password = forms.CharField(
        strip=False,
        error_messages={'required': 'Email and password are required'},
    )

    def clean_email(self):
        return AdminAccount.normalize_email(self.cleaned_data['email'])


class AdminRegisterForm(forms.Form):
    email = forms.EmailField(error_messages={'required': 'Email and password are required'})
    password = forms.CharField(
        strip=False,
        error_messages={'required': 'Email and password are required'},
    )
    name = forms.CharField(max_length=100, required=False)

    def clean_email(self):
        email = AdminAccount.normalize_email(self.cleaned_data['email'])
        if AdminAccount.objects.filter(email=email).exists():
            raise ValidationError('Admin with this email already exists')
        return email

    def clean_password(self):
        password = self.cleaned_data['password']
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        return password

    def clean_name(self):
        return self.cleaned_data.get('name') or None


class PasswordChangeForm(forms.Form):
    current_password = forms.CharField(
        strip=False,
        error_messages={'required': 'Current and new password are required'},
    )
    new_password = forms.CharField(
        strip=False,
        error_messages={'required': 'Current and new password are required'},
    )

    def clean_new_password(self):
        password = self.cleaned_data['new_password']
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'New password must be at least {MIN_PASSWORD_LENGTH} characters')
        return password
