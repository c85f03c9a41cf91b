"""
Tests for the /api/admin endpoints:
- Hotel list, add, check-id, edit with 404 / 400 error mapping
- Participant view, edit and delete
- Check-in, check-out and early checkout responses
- Dashboard, checkout board, CSV export and audit log
"""
from datetime import date, timedelta

from models import db, AuditLog, Participant
from services.dashboard_service import estimate_rooms_needed, get_checkout_board
from utils.timezone import get_ist_today, utc_now


class TestHotelEndpoints:

    def test_list_hotels(self, app, admin_client, make_hotel):
        make_hotel('CHN001', '1')
        make_hotel('MDU005', '1')

        response = admin_client.get('/api/admin/hotels?hotelId=CHN001')

        assert response.status_code == 200
        assert [h['hotelId'] for h in response.get_json()] == ['CHN001']

    def test_get_unknown_hotel(self, app, admin_client):
        response = admin_client.get('/api/admin/hotels/404')

        assert response.status_code == 404
        assert response.get_json()['message'] == 'Hotel not found'

    def test_update_property_wide(self, app, admin_client, make_hotel):
        first = make_hotel('CHN001', '1', date(2025, 9, 1), date(2025, 9, 10))
        make_hotel('CHN001', '2', date(2025, 9, 20), date(2025, 9, 30))

        response = admin_client.put(f'/api/admin/hotels/{first.id}', json={'pincode': '600099'})

        assert response.status_code == 200
        body = response.get_json()
        assert body['affectedInstances'] == 2
        assert body['message'] == 'Hotel updated successfully (2 instances affected)'
        assert {h['pincode'] for h in body['updatedInstances']} == {'600099'}

    def test_update_overlap_is_rejected(self, app, admin_client, make_hotel):
        first = make_hotel('CHN001', '1', date(2025, 9, 1), date(2025, 9, 10))
        make_hotel('CHN001', '2', date(2025, 9, 20), date(2025, 9, 30))

        response = admin_client.put(f'/api/admin/hotels/{first.id}', json={'endDate': '2025-09-20'})

        assert response.status_code == 400
        assert response.get_json()['conflicts'][0]['instanceCode'] == '2'

    def test_update_immutable_field_is_bad_request(self, app, admin_client, make_hotel):
        hotel = make_hotel('CHN001', '1')

        response = admin_client.put(f'/api/admin/hotels/{hotel.id}', json={'hotelId': 'OTHER'})

        assert response.status_code == 400
        assert 'hotelId cannot be changed' in response.get_json()['errors']

    def test_update_unknown_hotel(self, app, admin_client):
        response = admin_client.put('/api/admin/hotels/404', json={'address': 'x'})
        assert response.status_code == 404

    def test_add_hotel(self, app, admin_client):
        response = admin_client.post('/api/admin/hotels', json={
            'hotelId': 'CBE010',
            'hotelName': 'Hill View',
            'location': 'Race Course',
            'district': 'Coimbatore',
            'address': '10 Race Course Road',
            'pincode': '641018',
            'startDate': '2025-09-01',
            'endDate': '2025-09-06',
            'totalRooms': 12,
            'occupiedRooms': 2,
        })

        assert response.status_code == 201
        hotel = response.get_json()['hotel']
        assert hotel['instanceCode'] == '1'
        assert hotel['availableRooms'] == 10

    def test_check_id(self, app, admin_client, make_hotel):
        make_hotel('CHN001', '1')

        body = admin_client.get('/api/admin/hotels/check-id?hotelId=CHN001').get_json()

        assert body['exists'] is True
        assert body['suggestedInstanceCode'] == '2'
        assert len(body['existingInstances']) == 1

    def test_check_id_requires_hotel_id(self, app, admin_client):
        assert admin_client.get('/api/admin/hotels/check-id').status_code == 400

    def test_dashboard_hotels_sorted(self, app, admin_client, make_hotel):
        make_hotel('CHN001', '1', total_rooms=5)
        make_hotel('MDU005', '1', total_rooms=50)

        response = admin_client.get('/api/admin/dashboard/hotels?sortBy=totalRooms&sortOrder=desc')

        assert [h['hotelId'] for h in response.get_json()] == ['MDU005', 'CHN001']

    def test_dashboard_hotels_status_filter(self, app, admin_client, make_hotel):
        make_hotel('CHN001', '1', date(2020, 1, 1), date(2020, 1, 5))
        make_hotel('CHN001', '2', date(2099, 1, 1), date(2099, 1, 5))

        upcoming = admin_client.get('/api/admin/dashboard/hotels?status=upcoming').get_json()
        everything = admin_client.get('/api/admin/dashboard/hotels?status=all').get_json()

        assert [h['instanceCode'] for h in upcoming] == ['2']
        assert len(everything) == 2

    def test_dashboard_hotels_unknown_status(self, app, admin_client):
        response = admin_client.get('/api/admin/dashboard/hotels?status=closed')

        assert response.status_code == 400
        assert response.get_json()['errors'] == ['Invalid status: closed']


class TestParticipantEndpoints:

    def test_listing_with_filters(self, app, admin_client, make_participant):
        make_participant('PLA_001', discipline='Athletics')
        make_participant('PLA_002', discipline='Kabaddi')

        body = admin_client.get('/api/admin/dashboard/participants?discipline=Kabaddi').get_json()

        assert body['total'] == 1
        assert body['participants'][0]['participantId'] == 'PLA_002'

    def test_role_filter(self, app, admin_client, make_participant):
        make_participant('PLA_001')
        make_participant('OFC_001', role='official')

        body = admin_client.get('/api/admin/dashboard/participants?role=official').get_json()
        assert [p['participantId'] for p in body['participants']] == ['OFC_001']

        response = admin_client.get('/api/admin/dashboard/participants?role=referee')
        assert response.status_code == 400
        assert response.get_json()['errors'] == ['Invalid role: referee']

    def test_search_and_pagination(self, app, admin_client, make_participant):
        for i in range(3):
            make_participant(f'PLA_00{i}')

        body = admin_client.get('/api/admin/dashboard/participants?search=PLA&limit=2&page=2').get_json()

        assert body['total'] == 3
        assert body['pages'] == 2
        assert len(body['participants']) == 1

    def test_edit_participant(self, app, admin_client, make_participant):
        participant = make_participant('PLA_001')

        response = admin_client.put(f'/api/admin/participants/{participant.id}', json={
            'name': 'Renamed', 'actualCheckoutDate': '2025-09-04'
        })

        assert response.status_code == 200
        assert response.get_json()['name'] == 'Renamed'
        assert AuditLog.query.filter_by(action_type='edit').one().target_id == 'PLA_001'

    def test_checkout_date_after_booking_end_rejected(self, app, admin_client, make_participant):
        participant = make_participant('PLA_001')

        response = admin_client.put(f'/api/admin/participants/{participant.id}', json={
            'actualCheckoutDate': '2025-09-06'
        })

        assert response.status_code == 400

    def test_invalid_status_rejected(self, app, admin_client, make_participant):
        participant = make_participant('PLA_001')

        response = admin_client.put(f'/api/admin/participants/{participant.id}', json={'checkinStatus': 'gone'})

        assert response.status_code == 400

    def test_delete_participant(self, app, admin_client, make_participant):
        participant = make_participant('PLA_001')

        response = admin_client.delete(f'/api/admin/participants/{participant.id}')

        assert response.status_code == 200
        db.session.expire_all()
        assert Participant.query.count() == 0
        assert AuditLog.query.filter_by(action_type='delete').one().details['participant']['participantId'] == 'PLA_001'

    def test_unknown_participant(self, app, admin_client):
        assert admin_client.get('/api/admin/participants/404').status_code == 404


class TestStatusEndpoints:

    def test_checkin(self, app, admin_client, make_participant):
        make_participant('PLA_001')

        body = admin_client.post('/api/admin/checkin', json={'participantIds': ['PLA_001', 'NOPE']}).get_json()

        assert body['checkedIn'] == 1
        assert body['skipped'] == [{'participantId': 'NOPE', 'reason': 'skipped_not_found'}]

    def test_checkin_requires_ids(self, app, admin_client):
        assert admin_client.post('/api/admin/checkin', json={}).status_code == 400

    def test_checkout_with_date(self, app, admin_client, make_participant):
        make_participant('PLA_001', checkin_status='checked_in')

        body = admin_client.post('/api/admin/checkout', json={
            'participantIds': ['PLA_001'], 'newCheckoutDate': '2025-09-04'
        }).get_json()

        assert body['checkedOut'] == 1
        assert body['participants'][0]['actualCheckoutDate'] == '2025-09-04'

    def test_early_checkout(self, app, admin_client, make_participant, coach_user):
        make_participant('PLA_001', coach_id='COA_001', mobile_number='+919855555555')

        body = admin_client.post('/api/admin/early-checkout', json={
            'participantIds': ['PLA_001'], 'newCheckoutDate': '2025-09-03'
        }).get_json()

        assert body['updated'] == 1
        # No gateway configured in tests: messages are logged and count as sent
        assert body['notificationsSent'] == 2
        assert body['notificationsFailed'] == 0

    def test_early_checkout_requires_date(self, app, admin_client, make_participant):
        make_participant('PLA_001')

        response = admin_client.post('/api/admin/early-checkout', json={'participantIds': ['PLA_001']})

        assert response.status_code == 400


class TestDashboard:

    def test_stats(self, app, admin_client, make_hotel, make_participant):
        make_hotel('CHN001', '1', total_rooms=10, occupied_rooms=4, available_rooms=6)
        make_participant('COA_001', role='coach', team_name='Tigers')
        make_participant('PLA_001', team_name='Tigers', checkin_status='checked_in')
        make_participant('PLA_002', team_name='Lions')
        make_participant('OFC_001', role='official', checkin_status='checked_in')

        stats = admin_client.get('/api/admin/dashboard/stats').get_json()

        assert stats['totalParticipants'] == 4
        assert stats['totalTeams'] == 2
        assert stats['totalPlayers'] == 2
        assert stats['checkedInCount'] == 2
        assert stats['pendingActions'] == 2
        assert stats['occupancyRate'] == 40
        assert stats['estimatedRoomsNeeded'] == 3

    def test_rooms_estimate(self):
        assert estimate_rooms_needed(7, 3, 2) == 3 + 2 + 2

    def test_checkout_board(self, app, make_participant):
        today = date(2025, 9, 5)
        make_participant('PLA_001', checkin_status='checked_in', booking_end_date=today)
        make_participant('PLA_002', checkin_status='checked_in', booking_end_date=today - timedelta(days=1))
        make_participant('PLA_003', checkin_status='pending')

        board = get_checkout_board(today=today)

        assert [p['participantId'] for p in board['participants']] == ['PLA_002', 'PLA_001']
        assert board['stats']['dueToday'] == 1
        assert board['stats']['overdue'] == 1

    def test_completed_today(self, app, make_participant):
        today = get_ist_today()
        make_participant('PLA_001', checkin_status='checked_out', checkout_time=utc_now(),
                         booking_end_date=today + timedelta(days=2))

        assert get_checkout_board()['stats']['completed'] == 1

    def test_export_csv(self, app, admin_client, make_participant):
        make_participant('PLA_001', name='Arun')

        response = admin_client.get('/api/admin/export/participants')

        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        lines = response.get_data(as_text=True).splitlines()
        assert lines[0].startswith('"ID","Name"')
        assert lines[1].startswith('"PLA_001","Arun"')

    def test_audit_logs(self, app, admin_client, make_participant):
        make_participant('PLA_001')
        admin_client.post('/api/admin/checkin', json={'participantIds': ['PLA_001']})

        body = admin_client.get('/api/admin/audit-logs?actionType=checkin').get_json()

        assert body['total'] == 1
        assert body['logs'][0]['details']['checkedInCount'] == 1

    def test_audit_logs_bad_date(self, app, admin_client):
        assert admin_client.get('/api/admin/audit-logs?fromDate=yesterday').status_code == 400
