from typing import List, Mapping

from .errors import InvalidInput, InvalidState
from .scoring import winners
from .validation import check_positions, require_track


def tied_players(point_totals: Mapping[int, int]) -> set:
    tied = winners(point_totals)
    if len(tied) < 2:
        raise InvalidState('No tie needed: a single player leads on points')
    return tied


def resolve_overtime(point_totals: Mapping[int, int], track_id: int, results: List[dict]):
    """Validate an overtime submission against the tied players.

    Returns ``(winner_id, track)``. Only the players sharing the top
    regular-race total may appear, and whoever finishes first wins. The
    overtime race itself never scores, so a tie inside it cannot occur:
    positions must be a full permutation.
    """
    tied = tied_players(point_totals)

    submitted = [r['player_id'] for r in results]
    if len(submitted) != len(tied) or set(submitted) != tied:
        raise InvalidInput(f'Results must cover exactly the {len(tied)} tied players')

    check_positions(results, len(tied))

    first = [r['player_id'] for r in results if r['finish_position'] == 1]
    if len(first) != 1:
        raise InvalidInput('Must have exactly one first place')

    track = require_track(track_id)
    return first[0], track
