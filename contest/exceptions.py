"""
Vote outcomes that are not a recorded ballot.

VoteRejected subclasses are expected, user-facing outcomes and are turned
into typed JSON responses by the views. TransientStoreFailure wraps database
errors; the caller may retry the whole request.
"""


class VoteRejected(Exception):
    """Base class for expected vote rejections."""

    message = 'Vote rejected'
    status = 400

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class AlreadyVoted(VoteRejected):
    message = 'You have already voted'
    status = 403

    def __init__(self, message=None, matched_by=None):
        super().__init__(message)
        self.matched_by = matched_by


class VotingClosed(VoteRejected):
    message = 'Voting is closed'
    status = 403


class InvalidCandidate(VoteRejected):
    message = 'Invalid candidate'
    status = 400


class FingerprintRequired(VoteRejected):
    message = 'Device fingerprint is required'
    status = 400


class TransientStoreFailure(Exception):
    """The database could not serve the request. Nothing was committed."""

    message = 'Please try again'
    status = 503
