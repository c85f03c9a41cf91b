"""
Coach Routes
A coach sees and checks in/out their own team only
"""
from flask import Blueprint, jsonify, request
from flask_login import current_user
import logging

from services.checkin_service import CheckinService
from services.participant_service import ParticipantStore
from utils.decorators import coach_required

logger = logging.getLogger(__name__)

coach_bp = Blueprint('coach', __name__, url_prefix='/api/coach')


def _coach_id():
    coach_id = current_user.coach_id
    if not coach_id:
        logger.warning(f'Coach user {current_user.id} has no coach id')
    return coach_id


@coach_bp.route('/dashboard', methods=['GET'])
@coach_required
def dashboard():
    coach_id = _coach_id()
    if not coach_id:
        return jsonify({'message': 'Coach ID not found'}), 400

    store = ParticipantStore()
    coach = store.get_by_participant_id(coach_id)
    players = [p for p in store.list_by_coach(coach_id) if p.participant_id != coach_id]

    return jsonify({
        'coach': coach.to_dict() if coach else None,
        'players': [p.to_dict() for p in players],
    })


@coach_bp.route('/checkin', methods=['POST'])
@coach_required
def checkin():
    coach_id = _coach_id()
    if not coach_id:
        return jsonify({'message': 'Coach ID not found'}), 400

    data = request.get_json(silent=True) or {}
    result = CheckinService().check_in(data.get('participantIds'), current_user, acting_coach_id=coach_id)
    return jsonify(dict(result.to_dict(), message='Check-in successful', checkedIn=result.updated_count))


@coach_bp.route('/checkout', methods=['POST'])
@coach_required
def checkout():
    coach_id = _coach_id()
    if not coach_id:
        return jsonify({'message': 'Coach ID not found'}), 400

    data = request.get_json(silent=True) or {}
    result = CheckinService().check_out(
        data.get('participantIds'),
        current_user,
        new_checkout_date=data.get('newCheckoutDate'),
        acting_coach_id=coach_id
    )
    return jsonify(dict(result.to_dict(), message='Check-out successful', checkedOut=result.updated_count))
