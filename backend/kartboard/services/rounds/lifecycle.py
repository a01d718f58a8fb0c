from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from kartboard import db
from kartboard.models import Player, Race, RaceResult, Round, RoundPlayer
from .errors import Conflict, InvalidInput, InvalidState, NotFound
from .overtime import resolve_overtime
from .scoring import has_tie, regular_totals, winners
from .validation import as_int, parse_submission, require_draft, validate_race_submission


def get_round(round_id) -> Round:
    round_ = db.session.get(Round, round_id)
    if round_ is None:
        raise NotFound('Round not found')
    return round_


@contextmanager
def round_write(round_id, event: str):
    """Apply one round mutation as a single transaction.

    The round row carries a version counter, so a writer that read the
    round before someone else committed fails here instead of silently
    overwriting.
    """
    try:
        yield
        db.session.commit()
    except (StaleDataError, IntegrityError) as exc:
        db.session.rollback()
        current_app.logger.warning(f"[round-conflict] round={round_id} event={event} error={exc.__class__.__name__}")
        raise Conflict('Round was modified by another request; reload and try again') from None


def _replace_race(round_, existing, new_race) -> None:
    if existing is not None:
        round_.races.remove(existing)
        # Flush the delete first so the (round, index) slot is free
        db.session.flush()
    round_.races.append(new_race)


def create_round(player_ids) -> Round:
    cfg = current_app.config
    min_players = int(cfg.get('MIN_PLAYERS', 2))
    max_players = int(cfg.get('MAX_PLAYERS', 4))
    if not isinstance(player_ids, list) or not min_players <= len(player_ids) <= max_players:
        raise InvalidInput(f'Must have {min_players}-{max_players} players')
    try:
        player_ids = [as_int(pid) for pid in player_ids]
    except (TypeError, ValueError):
        raise InvalidInput('Player ids must be integers') from None
    if len(set(player_ids)) != len(player_ids):
        raise InvalidInput('Duplicate players not allowed')
    found = Player.query.filter(Player.id.in_(player_ids)).count()
    if found != len(player_ids):
        raise NotFound('One or more players not found')

    round_ = Round(status='DRAFT')
    for seat, pid in enumerate(player_ids):
        round_.round_players.append(RoundPlayer(player_id=pid, seat=seat))
    db.session.add(round_)
    db.session.commit()
    current_app.logger.info(f"[round-create] round={round_.id} players={player_ids}")
    return round_


def submit_race(round_id, race_index: int, data) -> dict:
    """Validate and store one regular race, replacing any earlier entry at that index."""
    cfg = current_app.config
    round_ = db.session.get(Round, round_id)
    require_draft(round_)
    track_id, results = parse_submission(data)
    try:
        track = validate_race_submission(
            round_, race_index, track_id, results,
            races_per_round=int(cfg.get('RACES_PER_ROUND', 4)),
            enforce_unique_tracks=bool(cfg.get('ENFORCE_UNIQUE_TRACKS', False)),
        )
    except (InvalidInput, InvalidState, NotFound) as exc:
        current_app.logger.warning(f"[race-rejected] round={round_id} index={race_index} reason={exc.message}")
        raise

    points_table = current_app.extensions['points_table']
    player_count = len(round_.round_players)
    awarded = [
        {'player_id': r['player_id'], 'points': points_table.points_for(r['finish_position'], player_count)}
        for r in results
    ]
    positions = {r['player_id']: r['finish_position'] for r in results}

    race = Race(
        race_index=race_index,
        is_overtime=False,
        track_id=track.id,
        results=[
            RaceResult(player_id=a['player_id'], finish_position=positions[a['player_id']], points_awarded=a['points'])
            for a in awarded
        ],
    )
    with round_write(round_id, 'race'):
        existing = round_.race_at(race_index)
        round_.touch()
        _replace_race(round_, existing, race)

    current_app.logger.info(
        f"[race-saved] round={round_id} index={race_index} track={track.id} "
        f"replaced={existing is not None} points={[a['points'] for a in awarded]}"
    )
    return {'race_id': race.id, 'points_awarded': awarded}


def attempt_complete(round_id) -> dict:
    """Finalize the round after its regular races, unless the lead is shared.

    A tie leaves the round in DRAFT and reports the tied players so the
    caller can collect an overtime race.
    """
    round_ = get_round(round_id)
    if round_.status != 'DRAFT':
        raise InvalidState('Round is not in draft status')

    races_per_round = int(current_app.config.get('RACES_PER_ROUND', 4))
    missing = races_per_round - len(round_.regular_races)
    if missing > 0:
        raise InvalidState(f'Round incomplete: need {missing} more race(s)')

    point_totals = regular_totals(round_)
    leaders = winners(point_totals)
    if has_tie(point_totals):
        current_app.logger.info(f"[round-tied] round={round_id} tied={sorted(leaders)} totals={point_totals}")
        return {'winner_id': None, 'is_tied': True, 'tied_player_ids': sorted(leaders)}

    (winner_id,) = leaders
    with round_write(round_id, 'complete'):
        round_.status = 'COMPLETED'
        round_.winner_player_id = winner_id
    current_app.logger.info(f"[round-complete] round={round_id} winner={winner_id} totals={point_totals}")
    return {'winner_id': winner_id, 'is_tied': False}


def attempt_overtime(round_id, data) -> dict:
    """Record the decider race between tied players and finalize the round.

    At most one overtime race exists per round; a new submission replaces
    the old one. Overtime results carry no points.
    """
    round_ = db.session.get(Round, round_id)
    require_draft(round_)
    track_id, results = parse_submission(data)

    races_per_round = int(current_app.config.get('RACES_PER_ROUND', 4))
    if len(round_.regular_races) < races_per_round:
        raise InvalidState(f'Must complete {races_per_round} races before overtime')

    point_totals = regular_totals(round_)
    if not has_tie(point_totals):
        raise InvalidState('No tie detected, overtime not needed')

    try:
        winner_id, track = resolve_overtime(point_totals, track_id, results)
    except (InvalidInput, InvalidState, NotFound) as exc:
        current_app.logger.warning(f"[overtime-rejected] round={round_id} reason={exc.message}")
        raise

    race = Race(
        race_index=int(current_app.config.get('OVERTIME_RACE_INDEX', 5)),
        is_overtime=True,
        track_id=track.id,
        results=[
            RaceResult(player_id=r['player_id'], finish_position=r['finish_position'], points_awarded=None)
            for r in results
        ],
    )
    with round_write(round_id, 'overtime'):
        _replace_race(round_, round_.overtime_race, race)
        round_.status = 'COMPLETED'
        round_.winner_player_id = winner_id

    current_app.logger.info(f"[overtime] round={round_id} track={track.id} winner={winner_id}")
    return {'winner_id': winner_id}
