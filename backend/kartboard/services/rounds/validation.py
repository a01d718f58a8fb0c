from typing import List

from kartboard import db
from kartboard.models import Track
from .errors import InvalidInput, InvalidState, NotFound


def as_int(value) -> int:
    """Strict integer conversion for JSON input.

    Accepts real ints and integer strings such as ``"2"``. Booleans, floats
    and anything else raise ValueError rather than being coerced.
    """
    if isinstance(value, bool):
        raise ValueError(f'not an integer: {value!r}')
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    raise ValueError(f'not an integer: {value!r}')


def parse_submission(data) -> tuple:
    """Normalize a ``{track_id, results: [{player_id, finish_position}]}`` payload.

    Returns ``(track_id, results)`` with integer ids and positions, or
    raises InvalidInput when the shape is wrong.
    """
    data = data or {}
    track_id = data.get('track_id')
    raw_results = data.get('results')
    if track_id in (None, '') or not isinstance(raw_results, list):
        raise InvalidInput('track_id and results are required')
    try:
        track_id = as_int(track_id)
    except ValueError:
        raise InvalidInput('track_id must be an integer') from None
    try:
        results = [
            {'player_id': as_int(r['player_id']), 'finish_position': as_int(r['finish_position'])}
            for r in raw_results
        ]
    except (KeyError, TypeError, ValueError):
        raise InvalidInput('Each result needs an integer player_id and finish_position') from None
    return track_id, results


def require_draft(round_) -> None:
    if round_ is None:
        raise NotFound('Round not found')
    if round_.status != 'DRAFT':
        raise InvalidState('Round is not editable: it is not in draft status')


def check_positions(results: List[dict], count: int) -> None:
    """Finish positions must be exactly 1..count, each used once."""
    positions = sorted(r['finish_position'] for r in results)
    if positions != list(range(1, count + 1)):
        raise InvalidInput(f'Invalid position assignment: positions must be unique values from 1 to {count}')


def require_track(track_id):
    track = db.session.get(Track, track_id)
    if track is None:
        raise NotFound('Unknown track')
    return track


def validate_race_submission(round_, race_index: int, track_id: int, results: List[dict],
                             races_per_round: int = 4, enforce_unique_tracks: bool = False):
    """Check a regular race submission against the round, in a fixed order.

    Nothing is written here; the first failing check raises. Returns the
    resolved Track.
    """
    require_draft(round_)

    if not 1 <= race_index <= races_per_round:
        raise InvalidInput(f'Race index out of range: must be between 1 and {races_per_round}')

    # Re-submitting an existing index is fine; skipping ahead is not
    if race_index > 1 and round_.race_at(race_index - 1) is None:
        raise InvalidState(f'Must complete previous race first (race {race_index - 1})')

    participant_ids = round_.player_ids
    if len(results) != len(participant_ids):
        raise InvalidInput(f'Result count mismatch: expected {len(participant_ids)} results, got {len(results)}')

    if {r['player_id'] for r in results} != set(participant_ids):
        raise InvalidInput('Unknown or missing player: results must cover exactly the players in this round')

    check_positions(results, len(participant_ids))

    track = require_track(track_id)

    if enforce_unique_tracks:
        used = {r.track_id for r in round_.regular_races if r.race_index != race_index}
        if track.id in used:
            raise InvalidInput('Track already used in this round')

    return track
