#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Dashboard Service
Aggregated statistics, checkout board, participant export and audit log
queries for the admin dashboard
"""

import csv
import math
from datetime import datetime, time, timedelta, timezone
import pandas as pd
from sqlalchemy import func, desc
from models import db, AuditLog, HotelInstance, Participant
from services.participant_service import ParticipantStore
from utils.dates import parse_date
from utils.timezone import IST_TZ, get_ist_today, utc_to_ist

# Room sharing used for capacity planning
PLAYERS_PER_ROOM = 3
COACHES_PER_ROOM = 2

EXPORT_COLUMNS = [
    'ID', 'Name', 'Mobile', 'Role', 'Discipline', 'District', 'Team',
    'Hotel ID', 'Hotel Name', 'Booking Reference', 'Start Date', 'End Date',
    'Status', 'Check-in Time', 'Check-out Time'
]


def estimate_rooms_needed(player_count, coach_count, official_count):
    return (
        math.ceil(player_count / PLAYERS_PER_ROOM)
        + math.ceil(coach_count / COACHES_PER_ROOM)
        + official_count
    )


def get_dashboard_stats():
    """
    Headline numbers for the admin dashboard

    Returns:
        dict of participant, hotel and capacity figures
    """
    role_counts = dict(
        db.session.query(Participant.role, func.count(Participant.id))
        .group_by(Participant.role).all()
    )
    status_counts = dict(
        db.session.query(Participant.checkin_status, func.count(Participant.id))
        .group_by(Participant.checkin_status).all()
    )

    total_teams = db.session.query(func.count(func.distinct(Participant.team_name))).filter(
        Participant.team_name.isnot(None),
        Participant.team_name != ''
    ).scalar() or 0

    total_hotels, total_rooms, occupied_rooms, available_rooms = db.session.query(
        func.count(HotelInstance.id),
        func.coalesce(func.sum(HotelInstance.total_rooms), 0),
        func.coalesce(func.sum(HotelInstance.occupied_rooms), 0),
        func.coalesce(func.sum(HotelInstance.available_rooms), 0),
    ).one()

    occupancy_rate = round(occupied_rooms / total_rooms * 100) if total_rooms else 0

    players = role_counts.get('player', 0)
    coaches = role_counts.get('coach', 0)
    officials = role_counts.get('official', 0)

    return {
        'totalParticipants': sum(role_counts.values()),
        'totalTeams': total_teams,
        'totalPlayers': players,
        'totalCoaches': coaches,
        'totalOfficials': officials,
        'checkedInCount': status_counts.get('checked_in', 0),
        'checkedOutCount': status_counts.get('checked_out', 0),
        'pendingActions': status_counts.get('pending', 0),
        'totalHotels': total_hotels,
        'totalAvailableRooms': int(available_rooms),
        'totalRooms': int(total_rooms),
        'occupiedRooms': int(occupied_rooms),
        'occupancyRate': occupancy_rate,
        'estimatedRoomsNeeded': estimate_rooms_needed(players, coaches, officials),
    }


def get_checkout_board(today=None):
    """
    Participants who have arrived, with days left on their booking

    Returns:
        dict with participants (each with daysRemaining, isOverdue) and stats
    """
    today = today or get_ist_today()

    participants = Participant.query.filter(
        Participant.checkin_status.in_(['checked_in', 'checked_out'])
    ).order_by(Participant.booking_end_date.asc(), Participant.name.asc()).all()

    board = []
    completed_today = 0
    for participant in participants:
        days_remaining = (participant.booking_end_date - today).days
        entry = participant.to_dict()
        entry['daysRemaining'] = days_remaining
        entry['isOverdue'] = days_remaining < 0 and participant.checkin_status != 'checked_out'
        board.append(entry)

        if (participant.checkin_status == 'checked_out' and participant.checkout_time
                and utc_to_ist(participant.checkout_time).date() == today):
            completed_today += 1

    stats = {
        'totalCheckedIn': len([p for p in board if p['checkinStatus'] == 'checked_in']),
        'dueToday': len([p for p in board if p['daysRemaining'] == 0 and p['checkinStatus'] == 'checked_in']),
        'overdue': len([p for p in board if p['isOverdue']]),
        'completed': completed_today,
    }

    return {'participants': board, 'stats': stats}


def export_participants_csv(filters=None):
    """
    Render the (filtered) participant list as CSV text

    Every participant matching the filters is exported, not just one page.
    """
    filters = dict(filters or {})
    store = ParticipantStore()

    rows = []
    page = 1
    while True:
        filters['page'] = page
        filters['limit'] = 500
        listing = store.list(filters)
        for p in listing['participants']:
            rows.append([
                p.participant_id,
                p.name,
                p.mobile_number or '',
                p.role,
                p.discipline,
                p.district or '',
                p.team_name or '',
                p.hotel_id,
                p.hotel_name,
                p.booking_reference,
                p.booking_start_date.isoformat(),
                p.booking_end_date.isoformat(),
                p.checkin_status,
                p.checkin_time.isoformat() if p.checkin_time else '',
                p.checkout_time.isoformat() if p.checkout_time else '',
            ])
        if page >= (listing['pages'] or 1):
            break
        page += 1

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator='\n')


def _day_bounds(value, end_of_day=False):
    """IST calendar day -> naive UTC boundary, matching stored timestamps"""
    day = parse_date(value)
    local = datetime.combine(day, time.min, tzinfo=IST_TZ)
    if end_of_day:
        local += timedelta(days=1)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def get_audit_logs(filters=None, page=1, per_page=50):
    """
    Filtered audit trail, newest first

    Args:
        filters: dict with optional user_id, action_type, target_entity,
            from_date and to_date (inclusive IST calendar days)

    Returns:
        Flask-SQLAlchemy pagination of AuditLog
    """
    filters = filters or {}
    query = AuditLog.query

    if filters.get('user_id'):
        query = query.filter(AuditLog.user_id == int(filters['user_id']))
    if filters.get('action_type'):
        query = query.filter(AuditLog.action_type == filters['action_type'])
    if filters.get('target_entity'):
        query = query.filter(AuditLog.target_entity == filters['target_entity'])
    if filters.get('from_date'):
        query = query.filter(AuditLog.timestamp >= _day_bounds(filters['from_date']))
    if filters.get('to_date'):
        query = query.filter(AuditLog.timestamp < _day_bounds(filters['to_date'], end_of_day=True))

    return query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).paginate(
        page=page, per_page=per_page, error_out=False
    )
