"""
Results aggregation
===================

Read-only projection over Candidate rows:
- Candidates grouped by category
- Ranked by vote count descending, ties kept in id order
- Percentage of total ballots, one decimal

The total is the number of Vote rows. Every ballot adds one to a king and one
to a queen, so summing the counters would count each ballot twice.
"""

from typing import Dict, List, Optional
import logging

from django.db import DatabaseError  # pyright: ignore[reportMissingModuleSource]
from django.utils import timezone  # pyright: ignore[reportMissingModuleSource]

from .exceptions import TransientStoreFailure
from .models import Candidate, Vote

logger = logging.getLogger(__name__)


def calculate_percentage(votes: int, total: int) -> float:
    """
    Share of total as a percentage rounded to one decimal.

    A zero total gives 0.0 instead of dividing by zero.
    """
    if total <= 0:
        return 0.0
    return round(100 * votes / total, 1)


def rank_candidates(candidates: List[dict]) -> List[dict]:
    """Sort by vote count descending. Python's sort is stable, so ties keep id order."""
    ordered = sorted(candidates, key=lambda c: c['id'])
    return sorted(ordered, key=lambda c: c['voteCount'], reverse=True)


def build_results(candidates: List[dict], total_votes: int) -> Dict[str, List[dict]]:
    """
    Group candidate dicts by category and attach percentages.

    Args:
        candidates: Dicts with at least id, category and voteCount
        total_votes: Number of ballots cast

    Returns:
        {'kings': [...], 'queens': [...]}, each ranked
    """
    grouped = {Candidate.KING: [], Candidate.QUEEN: []}
    for candidate in candidates:
        entry = dict(candidate)
        entry['percentage'] = calculate_percentage(entry['voteCount'], total_votes)
        grouped.setdefault(entry['category'], []).append(entry)

    return {
        'kings': rank_candidates(grouped[Candidate.KING]),
        'queens': rank_candidates(grouped[Candidate.QUEEN]),
    }


def _candidate_rows():
    return [
        {
            'id': row['id'],
            'name': row['name'],
            'photoUrl': row['photo_url'],
            'category': row['category'],
            'voteCount': row['vote_count'],
        }
        for row in Candidate.objects.order_by('-vote_count', 'id').values(
            'id', 'name', 'photo_url', 'category', 'vote_count'
        )
    ]


def get_results() -> dict:
    """Current standings for both categories, with total and timestamp."""
    try:
        rows = _candidate_rows()
        total_votes = Vote.objects.count()
    except DatabaseError as e:
        logger.error(f"Error fetching results: {str(e)}")
        raise TransientStoreFailure() from e

    results = build_results(rows, total_votes)
    results['totalVotes'] = total_votes
    results['timestamp'] = timezone.now().isoformat()
    return results


def _leader(ranked: List[dict]) -> Optional[dict]:
    return ranked[0] if ranked else None


def get_summary() -> dict:
    """Leading king and queen (None for an empty category) and the total."""
    results = get_results()
    return {
        'king': _leader(results['kings']),
        'queen': _leader(results['queens']),
        'totalVotes': results['totalVotes'],
    }
