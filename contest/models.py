"""
Database models for the King & Queen contest
=============================================

Defines the data structure for:
- Candidate: a contestant in the king or queen category with a running tally
- Vote: one immutable ballot (one king + one queen) tied to a voter identity
- Setting: flat key/value store backing the voting/results gates
- AdminAccount: principal allowed to manage candidates and settings

Duplicate protection:
- Vote.fingerprint is unique (NULLs are not compared, so fingerprint-less
  ballots are allowed)
- (ip_address, cookie_token) is unique per Vote
Both are database constraints; application pre-checks only short-circuit them.
"""

from django.contrib.auth.hashers import check_password, make_password  # pyright: ignore[reportMissingModuleSource]
from django.core.validators import MaxLengthValidator  # pyright: ignore[reportMissingModuleSource]
from django.db import models  # pyright: ignore[reportMissingModuleSource]

from .identity import VOTER_IP_MAX_LENGTH, VOTER_TOKEN_MAX_LENGTH


class Candidate(models.Model):
    """
    A contestant in one category.

    Attributes:
        name: Display name
        category: 'king' or 'queen'
        photo_url: Opaque path of the uploaded photo (optional)
        vote_count: Number of committed votes referencing this candidate.
            Only ever changed by a relative F() update inside the vote commit.
    """

    KING = 'king'
    QUEEN = 'queen'
    CATEGORY_CHOICES = [
        (KING, 'King'),
        (QUEEN, 'Queen'),
    ]

    name = models.CharField(
        max_length=100,
        validators=[MaxLengthValidator(100)],
        help_text="Candidate display name"
    )
    category = models.CharField(
        max_length=5,
        choices=CATEGORY_CHOICES,
        help_text="Contest category"
    )
    photo_url = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        help_text="Path of the candidate photo"
    )
    vote_count = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text="Committed votes for this candidate"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['category', '-vote_count'], name='candidate_category_votes_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.category})"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'photoUrl': self.photo_url,
            'voteCount': self.vote_count,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }


class Vote(models.Model):
    """
    One ballot: a king choice and a queen choice from one voter identity.

    Attributes:
        ip_address: Best-effort client IP, "unknown" when none was available
        cookie_token: Long-lived random token from the voter cookie
        fingerprint: Client-computed device fingerprint (optional)
        king / queen: The chosen candidates
        voted_at: Commit timestamp

    Votes are never updated. Candidates with votes cannot be deleted or
    moved to the other category.
    """

    ip_address = models.CharField(
        max_length=VOTER_IP_MAX_LENGTH,
        help_text="Client IP address (may be 'unknown')"
    )
    cookie_token = models.CharField(
        max_length=VOTER_TOKEN_MAX_LENGTH,
        help_text="Voter cookie token"
    )
    fingerprint = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Device fingerprint supplied by the client"
    )
    king = models.ForeignKey(
        Candidate,
        on_delete=models.PROTECT,
        related_name='king_votes',
        limit_choices_to={'category': Candidate.KING},
    )
    queen = models.ForeignKey(
        Candidate,
        on_delete=models.PROTECT,
        related_name='queen_votes',
        limit_choices_to={'category': Candidate.QUEEN},
    )
    voted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-voted_at']
        constraints = [
            models.UniqueConstraint(
                fields=['ip_address', 'cookie_token'],
                name='unique_vote_per_ip_cookie',
            ),
        ]
        indexes = [
            models.Index(fields=['-voted_at'], name='vote_voted_at_idx'),
        ]

    def __str__(self):
        return f"Vote {self.id} at {self.voted_at}"


class Setting(models.Model):
    """Key/value row for process-wide flags. Missing key means default."""

    key = models.CharField(max_length=64, unique=True)
    value = models.TextField()
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key}={self.value}"


class AdminAccount(models.Model):
    """
    Contest administrator.

    Email is stored lowercase. Passwords go through Django's configured
    password hashers, never stored in clear.
    """

    email = models.EmailField(unique=True)
    password = models.CharField(max_length=128)
    name = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        """Normalize email before saving."""
        self.email = self.normalize_email(self.email)
        super().save(*args, **kwargs)

    @staticmethod
    def normalize_email(email):
        return (email or '').strip().lower()

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        return check_password(raw_password, self.password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
