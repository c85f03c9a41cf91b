#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Check-in / Check-out Service
Bulk status transitions pending -> checked_in -> checked_out, requested by
an admin or by a coach acting on their own team.
"""

import logging
from enum import Enum
from models import db, AuditLog, User
from services.exceptions import ValidationError
from services.notification_service import (
    NotificationService,
    format_early_checkout_message,
    format_player_checkout_message,
)
from services.participant_service import ParticipantStore
from utils.dates import parse_date
from utils.timezone import get_ist_now, utc_now

logger = logging.getLogger(__name__)


class ItemOutcome(Enum):
    UPDATED = 'updated'
    SKIPPED_NOT_FOUND = 'skipped_not_found'
    SKIPPED_NOT_OWNED = 'skipped_not_owned'
    SKIPPED_AFTER_BOOKING_END = 'skipped_after_booking_end'


class BulkStatusResult:
    """Per-id outcome of a bulk status change"""

    def __init__(self):
        self.items = []  # (participant_id, ItemOutcome, Participant or None)
        self.notifications = {'sent': 0, 'failed': 0}

    def add(self, participant_id, outcome, participant=None):
        self.items.append((participant_id, outcome, participant))

    @property
    def updated(self):
        return [p for _, outcome, p in self.items if outcome is ItemOutcome.UPDATED]

    @property
    def updated_count(self):
        return len(self.updated)

    @property
    def skipped(self):
        return [
            {'participantId': pid, 'reason': outcome.value}
            for pid, outcome, _ in self.items
            if outcome is not ItemOutcome.UPDATED
        ]

    def outcome_for(self, participant_id):
        for pid, outcome, _ in self.items:
            if pid == participant_id:
                return outcome
        return None

    def to_dict(self):
        return {
            'updated': self.updated_count,
            'participants': [p.to_dict() for p in self.updated],
            'skipped': self.skipped,
            'outcomes': [{'participantId': pid, 'outcome': outcome.value} for pid, outcome, _ in self.items],
        }


def _clean_ids(participant_ids):
    if not isinstance(participant_ids, (list, tuple)) or not participant_ids:
        raise ValidationError('Validation error', ['participantIds must be a non-empty list'])
    # Repeated ids are acted on once, first occurrence wins the position
    return list(dict.fromkeys(str(pid).strip() for pid in participant_ids))


class CheckinService:
    """
    Bulk check-in/out. Ids that cannot be acted on are skipped and reported,
    never raised.
    """

    def __init__(self, store=None, notifier=None):
        self.store = store or ParticipantStore()
        self._notifier = notifier

    @property
    def notifier(self):
        if self._notifier is None:
            self._notifier = NotificationService()
        return self._notifier

    def _resolve(self, participant_ids, result, acting_coach_id=None, new_checkout_date=None):
        """Yield (participant_id, participant) pairs that pass every guard"""
        for participant_id in participant_ids:
            participant = self.store.get_by_participant_id(participant_id)
            if not participant:
                result.add(participant_id, ItemOutcome.SKIPPED_NOT_FOUND)
                continue

            if acting_coach_id is not None and not participant.is_owned_by(acting_coach_id):
                result.add(participant_id, ItemOutcome.SKIPPED_NOT_OWNED)
                continue

            if new_checkout_date is not None and new_checkout_date > participant.booking_end_date:
                result.add(participant_id, ItemOutcome.SKIPPED_AFTER_BOOKING_END)
                continue

            yield participant_id, participant

    def _commit(self, action):
        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f'{action} failed: {e}')
            raise

    def check_in(self, participant_ids, user, acting_coach_id=None):
        """
        Mark participants checked in

        Args:
            participant_ids: natural participant ids (COA_001, PLA_001, ...)
            user: acting user, for the audit log
            acting_coach_id: set for coach-initiated calls; restricts the
                batch to the coach and their players

        Returns:
            BulkStatusResult
        """
        participant_ids = _clean_ids(participant_ids)
        result = BulkStatusResult()
        now = utc_now()

        for participant_id, participant in self._resolve(participant_ids, result, acting_coach_id):
            participant.checkin_status = 'checked_in'
            participant.checkin_time = now
            result.add(participant_id, ItemOutcome.UPDATED, participant)

        AuditLog.log(
            user=user,
            action_type=AuditLog.ACTION_CHECKIN,
            target_entity=AuditLog.ENTITY_PARTICIPANT,
            details={'participantIds': participant_ids, 'checkedInCount': result.updated_count}
        )
        self._commit('Check-in')

        logger.info(f'Check-in: {result.updated_count} of {len(participant_ids)} participants updated')

        if acting_coach_id is not None and result.updated_count:
            self._notify_transport(acting_coach_id, result)

        return result

    def _notify_transport(self, coach_id, result):
        """Tell the coach's transport contact how many players arrived"""
        player_count = len([p for p in result.updated if p.role == 'player'])
        if not player_count:
            return

        coach = self.store.get_by_participant_id(coach_id)
        if not coach or not coach.transport_poc:
            return

        checkin_time = get_ist_now().strftime('%d-%m-%Y %I:%M %p')
        if self.notifier.send_checkin_notification(coach.transport_poc, coach_id, player_count, checkin_time):
            result.notifications['sent'] += 1
        else:
            result.notifications['failed'] += 1

    def check_out(self, participant_ids, user, new_checkout_date=None, acting_coach_id=None):
        """
        Mark participants checked out

        If new_checkout_date is given it becomes the actual checkout date;
        participants whose booking ends before it are skipped.

        Returns:
            BulkStatusResult
        """
        participant_ids = _clean_ids(participant_ids)
        checkout_date = self._parse_checkout_date(new_checkout_date) if new_checkout_date else None
        result = BulkStatusResult()
        now = utc_now()

        for participant_id, participant in self._resolve(
                participant_ids, result, acting_coach_id, checkout_date):
            participant.checkin_status = 'checked_out'
            participant.checkout_time = now
            if checkout_date is not None:
                participant.actual_checkout_date = checkout_date
            result.add(participant_id, ItemOutcome.UPDATED, participant)

        AuditLog.log(
            user=user,
            action_type=AuditLog.ACTION_CHECKOUT,
            target_entity=AuditLog.ENTITY_PARTICIPANT,
            details={
                'participantIds': participant_ids,
                'checkedOutCount': result.updated_count,
                'newCheckoutDate': checkout_date,
            }
        )
        self._commit('Check-out')

        logger.info(f'Check-out: {result.updated_count} of {len(participant_ids)} participants updated')
        return result

    def early_checkout(self, participant_ids, user, new_checkout_date):
        """
        Shorten stays without changing check-in status

        Each updated participant with a mobile number is told the new date;
        for players the coach is told as well.

        Returns:
            BulkStatusResult with notifications {sent, failed}
        """
        participant_ids = _clean_ids(participant_ids)
        if not new_checkout_date:
            raise ValidationError('Validation error', ['newCheckoutDate is required'])
        checkout_date = self._parse_checkout_date(new_checkout_date)

        result = BulkStatusResult()
        messages = []

        for participant_id, participant in self._resolve(
                participant_ids, result, new_checkout_date=checkout_date):
            participant.actual_checkout_date = checkout_date
            result.add(participant_id, ItemOutcome.UPDATED, participant)
            messages.extend(self._early_checkout_messages(participant, checkout_date))

        AuditLog.log(
            user=user,
            action_type=AuditLog.ACTION_EARLY_CHECKOUT,
            target_entity=AuditLog.ENTITY_PARTICIPANT,
            details={
                'participantIds': participant_ids,
                'newCheckoutDate': checkout_date,
                'updatedCount': result.updated_count,
                'notificationsQueued': len(messages),
            }
        )
        self._commit('Early checkout')

        if messages:
            result.notifications = self.notifier.send_bulk(messages)

        logger.info(
            f'Early checkout to {checkout_date}: {result.updated_count} updated, '
            f"{result.notifications['sent']} notified"
        )
        return result

    @staticmethod
    def _early_checkout_messages(participant, checkout_date):
        date_text = checkout_date.isoformat()
        messages = []

        if participant.mobile_number:
            messages.append({
                'to': participant.mobile_number,
                'message': format_early_checkout_message(date_text),
            })

        if participant.role == 'player' and participant.coach_id:
            coach_user = User.query.filter_by(coach_id=participant.coach_id).first()
            if coach_user and coach_user.mobile_number:
                messages.append({
                    'to': coach_user.mobile_number,
                    'message': format_player_checkout_message(participant.name, date_text),
                })

        return messages

    @staticmethod
    def _parse_checkout_date(value):
        try:
            return parse_date(value)
        except ValueError as e:
            raise ValidationError('Validation error', [f'newCheckoutDate: {e}'])
