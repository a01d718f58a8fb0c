from typing import Dict, Hashable, Iterable, Mapping, Optional, Set


def totals(results: Iterable, seed: Optional[Iterable[Hashable]] = None) -> Dict[Hashable, int]:
    """Sum awarded points per player.

    ``results`` holds objects or dicts exposing ``player_id`` and
    ``points_awarded``; a null ``points_awarded`` (overtime) adds nothing.
    Players listed in ``seed`` start at 0 so they appear even without
    results.
    """
    sums: Dict[Hashable, int] = {pid: 0 for pid in (seed or ())}
    for result in results:
        player_id = _field(result, 'player_id')
        points = _field(result, 'points_awarded')
        sums[player_id] = sums.get(player_id, 0) + (points or 0)
    return sums


def regular_totals(round_) -> Dict[int, int]:
    """Totals over the round's non-overtime races only."""
    results = [res for race in round_.regular_races for res in race.results]
    return totals(results, seed=round_.player_ids)


def winners(point_totals: Mapping[Hashable, int]) -> Set[Hashable]:
    if not point_totals:
        return set()
    best = max(point_totals.values())
    return {pid for pid, points in point_totals.items() if points == best}


def has_tie(point_totals: Mapping[Hashable, int]) -> bool:
    return len(winners(point_totals)) > 1


def standings(round_):
    """Participants with their regular-race totals, best first (seat order breaks equal totals)."""
    point_totals = regular_totals(round_)
    leaders = winners(point_totals)
    rows = []
    for seat, rp in enumerate(round_.round_players):
        rows.append({
            'player_id': rp.player_id,
            'name': rp.player.name if rp.player else None,
            'seat': seat,
            'total_points': point_totals.get(rp.player_id, 0),
            'is_leader': rp.player_id in leaders,
        })
    rows.sort(key=lambda row: (-row['total_points'], row['seat']))
    return rows


def _field(result, name):
    if isinstance(result, Mapping):
        return result.get(name)
    return getattr(result, name)
