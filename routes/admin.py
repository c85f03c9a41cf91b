"""
Admin Routes
Uploads, dashboards, hotel and participant management, check-in/out
"""
from flask import Blueprint, jsonify, request, Response
from flask_login import current_user
import logging

from models import db, AuditLog
from services.checkin_service import CheckinService
from services.dashboard_service import (
    get_dashboard_stats, get_checkout_board, export_participants_csv, get_audit_logs
)
from services.exceptions import NotFound, ValidationError
from services.hotel_inventory_service import HotelInventoryStore
from services.hotel_update_service import HotelUpdateReconciler, create_hotel_instance
from services.participant_service import ParticipantStore
from services.upload_service import upload_hotel_inventory, upload_coaches_officials, upload_players
from utils.decorators import admin_required
from utils.timezone import get_ist_now

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

HOTEL_SORT_KEYS = {
    'hotelId': 'hotel_id',
    'hotelName': 'hotel_name',
    'district': 'district',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'totalRooms': 'total_rooms',
    'availableRooms': 'available_rooms',
}

UPLOADS = {
    'hotel-inventory': (upload_hotel_inventory, AuditLog.ENTITY_HOTEL, 'hotel_inventory'),
    'coaches-officials': (upload_coaches_officials, AuditLog.ENTITY_PARTICIPANT, 'coaches_officials'),
    'players': (upload_players, AuditLog.ENTITY_PARTICIPANT, 'players'),
}


def _participant_filters(args):
    return {
        'search': args.get('search'),
        'discipline': args.get('discipline'),
        'role': args.get('role'),
        'checkin_status': args.get('checkinStatus'),
        'hotel_id': args.get('hotelId'),
        'district': args.get('district'),
        'sort_order': args.get('sortOrder'),
        'page': args.get('page', 1, type=int),
        'limit': args.get('limit', type=int),
    }


# ============================================
# Uploads
# ============================================

@admin_bp.route('/upload/<sheet>', methods=['POST'])
@admin_required
def upload(sheet):
    if sheet not in UPLOADS:
        raise NotFound(f'Unknown upload type: {sheet}')

    file = request.files.get('file')
    if not file or not file.filename:
        return jsonify({'message': 'File is required'}), 400

    try:
        content = file.read().decode('utf-8-sig')
    except UnicodeDecodeError:
        return jsonify({'message': 'File must be UTF-8 text'}), 400

    handler, entity, upload_type = UPLOADS[sheet]
    result = handler(content)

    AuditLog.log(
        user=current_user,
        action_type=AuditLog.ACTION_UPLOAD,
        target_entity=entity,
        details={'type': upload_type, 'filename': file.filename, 'result': result.to_dict()}
    )
    db.session.commit()

    logger.info(f'Upload {upload_type} by user {current_user.id}: {result.created} created')
    return jsonify(result.to_dict())


# ============================================
# Dashboard
# ============================================

@admin_bp.route('/dashboard/stats', methods=['GET'])
@admin_required
def dashboard_stats():
    return jsonify(get_dashboard_stats())


@admin_bp.route('/dashboard/participants', methods=['GET'])
@admin_required
def dashboard_participants():
    listing = ParticipantStore().list(_participant_filters(request.args))
    return jsonify({
        'participants': [p.to_dict() for p in listing['participants']],
        'total': listing['total'],
        'page': listing['page'],
        'pages': listing['pages'],
    })


@admin_bp.route('/dashboard/hotels', methods=['GET'])
@admin_required
def dashboard_hotels():
    filters = {
        'search': request.args.get('search'),
        'district': request.args.get('district'),
        'status': request.args.get('status'),
        'sort_by': HOTEL_SORT_KEYS.get(request.args.get('sortBy')),
        'sort_order': request.args.get('sortOrder'),
    }
    hotels = HotelInventoryStore().list(filters)
    return jsonify([h.to_dict() for h in hotels])


@admin_bp.route('/dashboard/checkout', methods=['GET'])
@admin_required
def dashboard_checkout():
    return jsonify(get_checkout_board())


# ============================================
# Hotels
# ============================================

@admin_bp.route('/hotels', methods=['GET'])
@admin_required
def list_hotels():
    hotels = HotelInventoryStore().list({'hotel_id': request.args.get('hotelId')})
    return jsonify([h.to_dict() for h in hotels])


@admin_bp.route('/hotels', methods=['POST'])
@admin_required
def create_hotel():
    hotel = create_hotel_instance(request.get_json(silent=True), current_user)
    return jsonify({'message': 'Hotel added successfully', 'hotel': hotel.to_dict()}), 201


@admin_bp.route('/hotels/check-id', methods=['GET'])
@admin_required
def check_hotel_id():
    hotel_id = (request.args.get('hotelId') or '').strip()
    if not hotel_id:
        raise ValidationError('Validation error', ['hotelId is required'])

    store = HotelInventoryStore()
    instances = store.instances_of(hotel_id)
    return jsonify({
        'exists': bool(instances),
        'existingInstances': [h.to_dict() for h in instances],
        'suggestedInstanceCode': store.next_instance_code(hotel_id),
    })


@admin_bp.route('/hotels/<int:hotel_pk>', methods=['GET'])
@admin_required
def get_hotel(hotel_pk):
    hotel = HotelInventoryStore().get_by_id(hotel_pk)
    if not hotel:
        raise NotFound('Hotel not found')
    return jsonify(hotel.to_dict())


@admin_bp.route('/hotels/<int:hotel_pk>', methods=['PUT'])
@admin_required
def update_hotel(hotel_pk):
    result = HotelUpdateReconciler().apply_patch(hotel_pk, request.get_json(silent=True), current_user)
    return jsonify(result.to_dict())


# ============================================
# Participants
# ============================================

@admin_bp.route('/participants/<int:participant_pk>', methods=['GET'])
@admin_required
def get_participant(participant_pk):
    participant = ParticipantStore().get_by_id(participant_pk)
    if not participant:
        raise NotFound('Participant not found')
    return jsonify(participant.to_dict())


@admin_bp.route('/participants/<int:participant_pk>', methods=['PUT'])
@admin_required
def update_participant(participant_pk):
    participant = ParticipantStore().update(participant_pk, request.get_json(silent=True), current_user)
    return jsonify(participant.to_dict())


@admin_bp.route('/participants/<int:participant_pk>', methods=['DELETE'])
@admin_required
def delete_participant(participant_pk):
    ParticipantStore().delete(participant_pk, current_user)
    return jsonify({'message': 'Participant deleted successfully'})


# ============================================
# Check-in / Check-out
# ============================================

@admin_bp.route('/checkin', methods=['POST'])
@admin_required
def checkin():
    data = request.get_json(silent=True) or {}
    result = CheckinService().check_in(data.get('participantIds'), current_user)
    return jsonify(dict(result.to_dict(), message='Check-in successful', checkedIn=result.updated_count))


@admin_bp.route('/checkout', methods=['POST'])
@admin_required
def checkout():
    data = request.get_json(silent=True) or {}
    result = CheckinService().check_out(
        data.get('participantIds'), current_user, new_checkout_date=data.get('newCheckoutDate')
    )
    return jsonify(dict(result.to_dict(), message='Check-out successful', checkedOut=result.updated_count))


@admin_bp.route('/early-checkout', methods=['POST'])
@admin_required
def early_checkout():
    data = request.get_json(silent=True) or {}
    result = CheckinService().early_checkout(
        data.get('participantIds'), current_user, data.get('newCheckoutDate')
    )
    return jsonify(dict(
        result.to_dict(),
        message='Early checkout processed',
        notificationsSent=result.notifications['sent'],
        notificationsFailed=result.notifications['failed'],
    ))


# ============================================
# Export / Audit
# ============================================

@admin_bp.route('/export/participants', methods=['GET'])
@admin_required
def export_participants():
    csv_text = export_participants_csv(_participant_filters(request.args))
    filename = f"participants_{get_ist_now().strftime('%Y%m%d_%H%M%S')}.csv"
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )


@admin_bp.route('/audit-logs', methods=['GET'])
@admin_required
def audit_logs():
    filters = {
        'user_id': request.args.get('userId', type=int),
        'action_type': request.args.get('actionType'),
        'target_entity': request.args.get('targetEntity'),
        'from_date': request.args.get('fromDate'),
        'to_date': request.args.get('toDate'),
    }
    try:
        logs = get_audit_logs(filters, page=request.args.get('page', 1, type=int))
    except ValueError as e:
        raise ValidationError('Validation error', [str(e)])

    return jsonify({
        'logs': [log.to_dict() for log in logs.items],
        'total': logs.total,
        'page': logs.page,
        'pages': logs.pages,
    })
