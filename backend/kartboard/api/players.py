from flask import Blueprint, jsonify, request, current_app
from kartboard import db
from kartboard.models import Player, Track
from kartboard.services import stats


players = Blueprint('players', __name__)


@players.route('/players', methods=['GET'])
def list_players():
    return jsonify([p.to_dict() for p in Player.query.order_by(Player.name).all()])


@players.route('/players/<int:player_id>', methods=['GET'])
def get_player(player_id):
    player = db.session.get(Player, player_id)
    if not player:
        return jsonify({'error': 'Player not found'}), 404
    limit = int(current_app.config.get('RECENT_ROUNDS_LIMIT', 10))
    return jsonify(stats.player_profile(player, recent_limit=limit))


@players.route('/tracks', methods=['GET'])
def list_tracks():
    query = Track.query
    search = (request.args.get('search') or '').strip()
    if search:
        query = query.filter(Track.name.ilike(f'%{search}%'))
    return jsonify([t.to_dict() for t in query.order_by(Track.name).all()])


@players.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    return jsonify(stats.leaderboard())
