"""
Settings gate backed by the Setting table.

Flags are stored as the strings "true"/"false". Every read goes to the
database so a toggle from the admin takes effect on the very next request,
on every server instance.
"""

import logging

from django.db import DatabaseError  # pyright: ignore[reportMissingModuleSource]

from .exceptions import TransientStoreFailure
from .models import Setting

logger = logging.getLogger(__name__)

VOTING_OPEN = 'voting_open'
RESULTS_ANNOUNCED = 'results_announced'

DEFAULTS = {
    VOTING_OPEN: 'true',
    RESULTS_ANNOUNCED: 'false',
}


def get_setting(key, default=None):
    """Return the stored value for key, or default when absent."""
    try:
        value = Setting.objects.filter(key=key).values_list('value', flat=True).first()
    except DatabaseError as e:
        logger.error(f"Error reading setting {key}: {str(e)}")
        raise TransientStoreFailure() from e
    return default if value is None else value


def set_setting(key, value):
    """Upsert key. Last write wins."""
    try:
        setting, _ = Setting.objects.update_or_create(key=key, defaults={'value': value})
    except DatabaseError as e:
        logger.error(f"Error writing setting {key}: {str(e)}")
        raise TransientStoreFailure() from e
    return setting


def get_flag(key):
    return get_setting(key, DEFAULTS[key]) == 'true'


def set_flag(key, enabled):
    set_setting(key, 'true' if enabled else 'false')
    logger.info(f"Setting {key} set to {enabled}")


def voting_open():
    return get_flag(VOTING_OPEN)


def results_announced():
    return get_flag(RESULTS_ANNOUNCED)


def set_voting_open(open_):
    set_flag(VOTING_OPEN, open_)


def set_results_announced(announced):
    set_flag(RESULTS_ANNOUNCED, announced)
