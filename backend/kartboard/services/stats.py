"""Leaderboard and per-player statistics.

Only COMPLETED rounds count, and only their regular (non-overtime) race
results contribute points and placings.
"""
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func

from kartboard import db
from kartboard.models import Player, Race, RaceResult, Round, RoundPlayer


def _round_half_up(value, places):
    # Scale first, then round halves up: 6.25 -> 6.3, 2.125 -> 2.13
    scaled = Decimal(repr(value * 10 ** places)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(scaled) / 10 ** places


def _completed_results_query():
    return (
        db.session.query(RaceResult)
        .join(Race, RaceResult.race_id == Race.id)
        .join(Round, Race.round_id == Round.id)
        .filter(Round.status == 'COMPLETED', Race.is_overtime.is_(False))
    )


def _race_stats(results):
    total_points = sum(r.points_awarded or 0 for r in results)
    races = len(results)
    by_position = defaultdict(int)
    for r in results:
        by_position[r.finish_position] += 1
    return {
        'total_points': total_points,
        'races_raced': races,
        'avg_points_per_race': _round_half_up(total_points / races, 2) if races else 0,
        'first_place_races': by_position[1],
        'second_place_races': by_position[2],
        'third_place_races': by_position[3],
        'fourth_place_races': by_position[4],
        'podium_finishes': by_position[1] + by_position[2] + by_position[3],
    }


def _round_stats(rounds_played, wins):
    return {
        'wins': wins,
        'rounds_played': rounds_played,
        'win_percentage': _round_half_up(wins / rounds_played * 100, 1) if rounds_played else 0,
    }


def leaderboard():
    """One row per player, best first (wins, win %, points, then name)."""
    played = dict(
        db.session.query(RoundPlayer.player_id, func.count(RoundPlayer.id))
        .join(Round, RoundPlayer.round_id == Round.id)
        .filter(Round.status == 'COMPLETED')
        .group_by(RoundPlayer.player_id)
        .all()
    )
    wins = dict(
        db.session.query(Round.winner_player_id, func.count(Round.id))
        .filter(Round.status == 'COMPLETED', Round.winner_player_id.isnot(None))
        .group_by(Round.winner_player_id)
        .all()
    )
    results_by_player = defaultdict(list)
    for r in _completed_results_query().all():
        results_by_player[r.player_id].append(r)

    rows = []
    for player in Player.query.order_by(Player.name).all():
        row = player.to_dict()
        row.update(_round_stats(played.get(player.id, 0), wins.get(player.id, 0)))
        row.update(_race_stats(results_by_player[player.id]))
        rows.append(row)
    rows.sort(key=lambda r: (-r['wins'], -r['win_percentage'], -r['total_points'], r['name']))
    return rows


def player_profile(player: Player, recent_limit: int = 10):
    completed_rounds = (
        Round.query.join(RoundPlayer, RoundPlayer.round_id == Round.id)
        .filter(RoundPlayer.player_id == player.id, Round.status == 'COMPLETED')
        .order_by(Round.created_at.desc(), Round.id.desc())
        .all()
    )
    wins = sum(1 for rnd in completed_rounds if rnd.winner_player_id == player.id)
    results = _completed_results_query().filter(RaceResult.player_id == player.id).all()

    tracks = {}
    for r in results:
        track = r.race.track
        entry = tracks.setdefault(track.id, {
            'track_id': track.id,
            'track_name': track.name,
            'races': 0,
            'first_places': 0,
            'total_points': 0,
        })
        entry['races'] += 1
        entry['total_points'] += r.points_awarded or 0
        if r.finish_position == 1:
            entry['first_places'] += 1
    track_stats = []
    for entry in tracks.values():
        entry['avg_points'] = _round_half_up(entry['total_points'] / entry['races'], 2)
        track_stats.append(entry)
    track_stats.sort(key=lambda t: (-t['races'], t['track_name']))

    recent = []
    for rnd in completed_rounds[:recent_limit]:
        recent.append({
            'id': rnd.id,
            'created_at': rnd.created_at.isoformat() if rnd.created_at else None,
            'won': rnd.winner_player_id == player.id,
            'winner': rnd.winner.to_dict() if rnd.winner else None,
            'players': [rp.player.name for rp in rnd.round_players],
            'player_points': sum(
                res.points_awarded or 0
                for race in rnd.regular_races
                for res in race.results
                if res.player_id == player.id
            ),
        })

    stats = _round_stats(len(completed_rounds), wins)
    stats.update(_race_stats(results))
    data = player.to_dict()
    data.update({
        'stats': stats,
        'track_stats': track_stats,
        'recent_rounds': recent,
    })
    return data
