import pytest
from sqlalchemy import text

from kartboard import db
from kartboard.models import Round
from kartboard.services.rounds import lifecycle
from kartboard.services.rounds.errors import Conflict, InvalidInput, InvalidState, NotFound
from kartboard.services.rounds.overtime import resolve_overtime


def _payload(track_id, finish_order):
    return {
        'track_id': track_id,
        'results': [{'player_id': pid, 'finish_position': pos} for pos, pid in enumerate(finish_order, start=1)],
    }


def _play(round_id, track_id, orders):
    for idx, order in enumerate(orders, start=1):
        lifecycle.submit_race(round_id, idx, _payload(track_id, order))


def test_full_round_through_services(players, tracks):
    p1, p2, p3, p4 = players
    round_ = lifecycle.create_round(players)
    _play(round_.id, tracks[0], [
        [p1, p2, p3, p4],
        [p1, p2, p3, p4],
        [p2, p1, p3, p4],
        [p2, p3, p1, p4],
    ])
    assert lifecycle.attempt_complete(round_.id) == {'winner_id': p2, 'is_tied': False}
    round_ = db.session.get(Round, round_.id)
    assert round_.status == 'COMPLETED'
    assert round_.winner_player_id == p2


def test_submit_race_returns_points(players, tracks):
    round_ = lifecycle.create_round(players[:3])
    a, b, c = players[:3]
    saved = lifecycle.submit_race(round_.id, 1, _payload(tracks[0], [c, b, a]))
    assert saved['points_awarded'] == [
        {'player_id': c, 'points': 4},
        {'player_id': b, 'points': 2},
        {'player_id': a, 'points': 1},
    ]


def test_failed_validation_writes_nothing(players, tracks):
    round_ = lifecycle.create_round(players)
    bad = _payload(tracks[0], players)
    bad['results'][1]['finish_position'] = 1
    with pytest.raises(InvalidInput):
        lifecycle.submit_race(round_.id, 1, bad)
    assert db.session.get(Round, round_.id).races == []


def test_unknown_round(flask_app):
    with pytest.raises(NotFound):
        lifecycle.submit_race(9999, 1, _payload(1, [1, 2]))
    with pytest.raises(NotFound):
        lifecycle.attempt_complete(9999)
    with pytest.raises(NotFound):
        lifecycle.attempt_overtime(9999, _payload(1, [1, 2]))


def test_incomplete_round_reports_missing_races(players, tracks):
    round_ = lifecycle.create_round(players[:2])
    _play(round_.id, tracks[0], [players[:2], players[:2]])
    with pytest.raises(InvalidState) as excinfo:
        lifecycle.attempt_complete(round_.id)
    assert excinfo.value.message == 'Round incomplete: need 2 more race(s)'


def test_overtime_replaces_nothing_when_rejected(players, tracks):
    a, b = players[:2]
    round_ = lifecycle.create_round([a, b])
    _play(round_.id, tracks[0], [[a, b], [b, a], [a, b], [b, a]])
    with pytest.raises(InvalidInput):
        lifecycle.attempt_overtime(round_.id, _payload(tracks[1], [a, players[2]]))
    assert db.session.get(Round, round_.id).overtime_race is None

    assert lifecycle.attempt_overtime(round_.id, _payload(tracks[1], [a, b])) == {'winner_id': a}
    round_ = db.session.get(Round, round_.id)
    assert round_.overtime_race.race_index == 5
    assert [r.points_awarded for r in round_.overtime_race.results] == [None, None]


def test_stale_write_raises_conflict(players, tracks):
    p1, p2 = players[:2]
    round_ = lifecycle.create_round([p1, p2])
    _play(round_.id, tracks[0], [[p1, p2]] * 4)

    round_ = db.session.get(Round, round_.id)
    # load everything the completion step reads, then let another writer bump the row
    stale_version = round_.version
    assert len(round_.regular_races) == 4
    for race in round_.races:
        assert race.results
    db.session.execute(text('UPDATE round SET version = version + 1 WHERE id = :id'), {'id': round_.id})

    with pytest.raises(Conflict):
        lifecycle.attempt_complete(round_.id)

    # after reloading, the retry goes through
    reloaded = db.session.get(Round, round_.id)
    assert reloaded.status == 'DRAFT'
    assert reloaded.version == stale_version
    assert lifecycle.attempt_complete(round_.id)['winner_id'] == p1


def test_every_write_bumps_version(players, tracks):
    round_ = lifecycle.create_round(players[:2])
    first = db.session.get(Round, round_.id).version
    lifecycle.submit_race(round_.id, 1, _payload(tracks[0], players[:2]))
    second = db.session.get(Round, round_.id).version
    lifecycle.submit_race(round_.id, 1, _payload(tracks[1], players[:2]))
    third = db.session.get(Round, round_.id).version
    assert first < second < third


def test_resolve_overtime_three_way_tie(tracks):
    point_totals = {1: 12, 2: 12, 3: 12, 4: 8}
    results = [
        {'player_id': 3, 'finish_position': 1},
        {'player_id': 1, 'finish_position': 2},
        {'player_id': 2, 'finish_position': 3},
    ]
    winner_id, track = resolve_overtime(point_totals, tracks[0], results)
    assert winner_id == 3
    assert track.id == tracks[0]

    with pytest.raises(InvalidInput):
        resolve_overtime(point_totals, tracks[0], results[:2])


def test_resolve_overtime_without_tie(tracks):
    with pytest.raises(InvalidState):
        resolve_overtime({1: 9, 2: 5}, tracks[0], [{'player_id': 1, 'finish_position': 1}])
