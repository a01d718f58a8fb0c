from flask import Blueprint, jsonify, request
from kartboard.services.rounds import lifecycle
from kartboard.services.rounds.errors import RoundError
from kartboard.services.rounds.scoring import standings
from kartboard.socketio_events import notify_round_update


rounds = Blueprint('rounds', __name__)


@rounds.errorhandler(RoundError)
def handle_round_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@rounds.route('', methods=['POST'])
def create_round():
    data = request.get_json(silent=True) or {}
    round_ = lifecycle.create_round(data.get('player_ids'))
    return jsonify({'round_id': round_.id}), 201


@rounds.route('/<int:round_id>', methods=['GET'])
def get_round(round_id):
    round_ = lifecycle.get_round(round_id)
    payload = round_.to_dict()
    payload['standings'] = standings(round_)
    return jsonify(payload)


@rounds.route('/<int:round_id>/races/<int:race_index>', methods=['POST'])
def submit_race(round_id, race_index):
    data = request.get_json(silent=True)
    saved = lifecycle.submit_race(round_id, race_index, data)
    notify_round_update(round_id, 'DRAFT')
    return jsonify(saved), 201


@rounds.route('/<int:round_id>/complete', methods=['POST'])
def complete_round(round_id):
    outcome = lifecycle.attempt_complete(round_id)
    notify_round_update(round_id, 'TIED' if outcome['is_tied'] else 'COMPLETED')
    return jsonify(outcome)


@rounds.route('/<int:round_id>/overtime', methods=['POST'])
def submit_overtime(round_id):
    data = request.get_json(silent=True)
    outcome = lifecycle.attempt_overtime(round_id, data)
    notify_round_update(round_id, 'COMPLETED')
    return jsonify(outcome)
