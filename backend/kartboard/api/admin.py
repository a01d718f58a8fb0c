from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from sqlalchemy import func
from kartboard import db
from kartboard.auth import check_admin_code
from kartboard.models import Player, Round, RoundPlayer, ROUND_STATUSES
from kartboard.services.rounds.errors import RoundError
from kartboard.services.rounds.lifecycle import round_write
from kartboard.services.rounds.validation import as_int
from kartboard.socketio_events import notify_round_update


admin = Blueprint('admin', __name__)


@admin.errorhandler(RoundError)
def handle_round_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@admin.route('/verify', methods=['POST'])
def verify():
    data = request.get_json(silent=True) or {}
    if not current_app.config.get('ADMIN_CODE'):
        return jsonify({'error': 'Admin code not configured'}), 500
    if check_admin_code(data.get('code')):
        return jsonify({'valid': True})
    current_app.logger.warning("[admin-verify] rejected admin code")
    return jsonify({'valid': False}), 401


# ---- Players ----

@admin.route('/players', methods=['GET'])
@login_required
def list_players():
    rounds_played = dict(
        db.session.query(RoundPlayer.player_id, func.count(RoundPlayer.id)).group_by(RoundPlayer.player_id).all()
    )
    wins = dict(
        db.session.query(Round.winner_player_id, func.count(Round.id))
        .filter(Round.winner_player_id.isnot(None))
        .group_by(Round.winner_player_id)
        .all()
    )
    payload = []
    for p in Player.query.order_by(Player.name).all():
        pd = p.to_dict()
        pd['round_count'] = rounds_played.get(p.id, 0)
        pd['won_round_count'] = wins.get(p.id, 0)
        payload.append(pd)
    return jsonify(payload)


def _clean_name(value):
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


@admin.route('/players', methods=['POST'])
@login_required
def create_player():
    data = request.get_json(silent=True) or {}
    name = _clean_name(data.get('name'))
    if not name:
        return jsonify({'error': 'Name is required'}), 400
    if Player.query.filter_by(name=name).first():
        return jsonify({'error': 'A player with this name already exists'}), 400
    player = Player(name=name, avatar_url=data.get('avatar_url') or None)
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[admin-player-create] player={player.id} name={player.name}")
    return jsonify(player.to_dict()), 201


@admin.route('/players/<int:player_id>', methods=['PATCH'])
@login_required
def update_player(player_id):
    player = db.session.get(Player, player_id)
    if not player:
        return jsonify({'error': 'Player not found'}), 404
    data = request.get_json(silent=True) or {}
    if 'name' in data:
        name = _clean_name(data.get('name'))
        if not name:
            return jsonify({'error': 'Name is required'}), 400
        if name != player.name and Player.query.filter_by(name=name).first():
            return jsonify({'error': 'A player with this name already exists'}), 400
        player.name = name
    if 'avatar_url' in data:
        player.avatar_url = data.get('avatar_url') or None
    db.session.commit()
    return jsonify(player.to_dict())


@admin.route('/players/<int:player_id>', methods=['DELETE'])
@login_required
def delete_player(player_id):
    player = db.session.get(Player, player_id)
    if not player:
        return jsonify({'error': 'Player not found'}), 404
    # Cascades to the player's round memberships and race results
    db.session.delete(player)
    db.session.commit()
    current_app.logger.info(f"[admin-player-delete] player={player_id}")
    return jsonify({'success': True})


# ---- Rounds ----

@admin.route('/rounds', methods=['GET'])
@login_required
def list_rounds():
    rounds = Round.query.order_by(Round.created_at.desc(), Round.id.desc()).all()
    return jsonify([r.to_dict() for r in rounds])


@admin.route('/rounds/<int:round_id>', methods=['PATCH'])
@login_required
def update_round(round_id):
    """Administrative override of status and winner; bypasses the scoring rules."""
    round_ = db.session.get(Round, round_id)
    if not round_:
        return jsonify({'error': 'Round not found'}), 404
    data = request.get_json(silent=True) or {}

    status = data.get('status', round_.status)
    if status not in ROUND_STATUSES:
        return jsonify({'error': f"Invalid status. Must be one of {', '.join(ROUND_STATUSES)}"}), 400

    winner_id = round_.winner_player_id
    if 'winner_player_id' in data:
        winner_id = data.get('winner_player_id')
        if winner_id is not None:
            try:
                winner_id = as_int(winner_id)
            except (TypeError, ValueError):
                return jsonify({'error': 'Winner player not found'}), 400
            if not db.session.get(Player, winner_id):
                return jsonify({'error': 'Winner player not found'}), 400
            if winner_id not in round_.player_ids:
                return jsonify({'error': 'Winner must be a player in this round'}), 400

    if status == 'COMPLETED' and winner_id is None:
        return jsonify({'error': 'A completed round needs a winner'}), 400
    if status == 'DRAFT' and winner_id is not None:
        return jsonify({'error': 'A draft round cannot have a winner'}), 400

    with round_write(round_id, 'admin-update'):
        # A reopened round is rescored from its regular races
        if status == 'DRAFT' and round_.overtime_race is not None:
            round_.races.remove(round_.overtime_race)
        round_.status = status
        round_.winner_player_id = winner_id
    current_app.logger.info(f"[admin-round-update] round={round_id} status={status} winner={winner_id}")
    notify_round_update(round_id, status)
    return jsonify(round_.to_dict(include_races=False))


@admin.route('/rounds/<int:round_id>', methods=['DELETE'])
@login_required
def delete_round(round_id):
    round_ = db.session.get(Round, round_id)
    if not round_:
        return jsonify({'error': 'Round not found'}), 404
    db.session.delete(round_)
    db.session.commit()
    current_app.logger.info(f"[admin-round-delete] round={round_id}")
    return jsonify({'success': True})
