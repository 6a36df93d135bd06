# logic/notifications.py
# Рассылка уведомлений по событиям конвейера и чтение уведомлений получателем

"""
Уведомления создаются только здесь, синхронно и в той же сессии, что и
запись, которая их вызвала. Если запись откатывается - уведомлений нет; если
не удалось вставить уведомление - откатывается и запись.
"""

import logging

from extensions import db
from models import Notification, User
from errors import NotFound
from logic import policy
from logic.base import transactional

logger = logging.getLogger(__name__)


def _recipients_for_role(role):
    return User.query.filter_by(role=role).all()


def _contest_director(contest):
    if contest is None or contest.created_by is None:
        return None
    return db.session.get(User, contest.created_by)


def _fanout(recipients, type, priority, title, message, details=None,
            sample_id=None, contest_id=None, related_user_id=None, action_required=False):
    seen = set()
    created = []
    for user in recipients:
        if user is None or user.id in seen:
            continue
        seen.add(user.id)
        note = Notification(
            recipient_user_id=user.id,
            type=type,
            priority=priority,
            title=title,
            message=message,
            details=details,
            related_sample_id=sample_id,
            related_contest_id=contest_id,
            related_user_id=related_user_id,
            action_required=action_required,
        )
        db.session.add(note)
        created.append(note)
    # Ошибка вставки всплывает здесь и откатывает вызвавшую операцию
    db.session.flush()
    logger.info('Notification %s sent to %d recipient(s)', type, len(created))
    return created


def notify_user(user, type, priority, title, message, **kwargs):
    return _fanout([user], type, priority, title, message, **kwargs)


def broadcast_to_role(role, type, priority, title, message, **kwargs):
    return _fanout(_recipients_for_role(role), type, priority, title, message, **kwargs)


def _staff_of(contest):
    """Админы и директор, создавший конкурс."""
    return _recipients_for_role(policy.ADMIN) + [_contest_director(contest)]


# --- События конвейера ---

def on_user_registered(user):
    return broadcast_to_role(
        policy.ADMIN, 'user_registered', 'medium',
        'New user registered',
        f'{user.display_name} has registered and awaits verification',
        related_user_id=user.id, action_required=True,
    )


def on_sample_submitted(sample):
    owner = sample.participant
    message = f'Sample {sample.tracking_code} was submitted by {owner.email or owner.display_name}'
    return _fanout(
        _staff_of(sample.contest), 'sample_added', 'high',
        'New sample added', message,
        sample_id=sample.id, contest_id=sample.contest_id, related_user_id=sample.user_id,
    )


def on_status_changed(sample, old_status, new_status):
    if old_status == new_status:
        return []
    code = sample.tracking_code
    common = dict(sample_id=sample.id, contest_id=sample.contest_id)

    if new_status == 'received':
        return notify_user(
            sample.participant, 'sample_received', 'medium',
            'Sample received',
            f'Your sample {code} has been received at the facility.',
            **common,
        )
    if new_status == 'disqualified':
        reasons = []
        notes = None
        if sample.physical_evaluation is not None:
            reasons = sample.physical_evaluation.disqualification_reasons or []
            notes = sample.physical_evaluation.notes or None
        message = f'Your sample {code} was disqualified during physical evaluation'
        message += (': ' + '; '.join(reasons)) if reasons else '.'
        return notify_user(
            sample.participant, 'sample_disqualified', 'high',
            'Sample did not pass physical evaluation', message,
            details=notes, action_required=True, **common,
        )
    if new_status == 'approved':
        return notify_user(
            sample.participant, 'sample_approved', 'medium',
            'Sample approved',
            f'Your sample {code} passed physical evaluation and is approved.',
            **common,
        )
    if new_status == 'evaluated':
        return notify_user(
            sample.participant, 'sample_evaluated', 'medium',
            'Sample evaluation completed',
            f'Your sample {code} has completed all evaluations.',
            **common,
        )
    return []


def on_judge_assigned(assignment):
    sample = assignment.sample
    judge = assignment.judge
    code = sample.tracking_code or ''
    created = notify_user(
        judge, 'sample_assigned_to_judge', 'high',
        'New sample assignment',
        f'You have been assigned sample {code} for evaluation.',
        sample_id=sample.id, contest_id=sample.contest_id,
        related_user_id=sample.user_id, action_required=True,
    )
    created += notify_user(
        sample.participant, 'sample_assigned_to_judge', 'medium',
        'Sample assigned to a judge',
        f'Your sample {code} has been assigned to judge {judge.display_name}',
        sample_id=sample.id, contest_id=sample.contest_id, related_user_id=judge.id,
    )
    return created


def on_sensory_saved(evaluation, created):
    sample = evaluation.sample
    judge = evaluation.judge
    code = sample.tracking_code or ''
    verb = 'evaluated' if created else 'revised the evaluation of'
    common = dict(sample_id=sample.id, contest_id=sample.contest_id, related_user_id=judge.id)
    notes = _fanout(
        _staff_of(sample.contest), 'judge_evaluated_sample', 'medium',
        'Judge submitted an evaluation',
        f'Judge {judge.display_name} {verb} sample {code}.',
        **common,
    )
    # Участник получает уведомление только о первой оценке судьи
    if created:
        notes += notify_user(
            sample.participant, 'judge_evaluated_sample', 'medium',
            'Your sample was evaluated by a judge',
            f'Judge {judge.display_name} completed evaluation for your sample {code}.',
            **common,
        )
    return notes


def on_final_saved(evaluation, created):
    sample = evaluation.sample
    evaluator = evaluation.evaluator
    code = sample.tracking_code or ''
    common = dict(sample_id=sample.id, contest_id=sample.contest_id, related_user_id=evaluator.id)
    notes = _fanout(
        _staff_of(sample.contest), 'evaluator_evaluated_sample', 'medium',
        'Evaluator submitted a final evaluation',
        f'Evaluator {evaluator.display_name} evaluated sample {code}.',
        **common,
    )
    if created:
        notes += notify_user(
            sample.participant, 'evaluator_evaluated_sample', 'medium',
            'Your sample was evaluated by an evaluator',
            f'Evaluator {evaluator.display_name} completed a final evaluation for your sample.',
            **common,
        )
    return notes


def on_contest_created(contest):
    where = f' ({contest.location})' if contest.location else ''
    recipients = User.query.filter(User.role.in_(policy.ALL_ROLES)).all()
    return _fanout(
        recipients, 'contest_created', 'medium',
        'New contest created',
        f'A new contest has been created: {contest.name}{where}',
        contest_id=contest.id, related_user_id=contest.created_by,
    )


def on_contest_final_stage(contest):
    return broadcast_to_role(
        policy.EVALUATOR, 'contest_final_stage', 'high',
        'Contest entered final evaluation stage',
        f'Contest {contest.name} is now in final evaluation. Please proceed as instructed.',
        contest_id=contest.id, related_user_id=contest.created_by, action_required=True,
    )


def on_contest_completed(contest):
    recipients = User.query.filter(User.role.in_(policy.ALL_ROLES)).all()
    return _fanout(
        recipients, 'contest_completed', 'medium',
        'Contest completed',
        f'Contest {contest.name} has been marked as completed.',
        contest_id=contest.id, related_user_id=contest.created_by,
    )


def on_top_rank(result):
    sample = result.sample
    return notify_user(
        sample.participant, 'final_ranking_top3', 'high',
        f'Congratulations! Your sample ranked {result.rank}',
        f'Your sample achieved rank {result.rank} with average score {result.average_score:.2f}.',
        sample_id=sample.id, contest_id=result.contest_id,
    )


# --- Чтение и изменение получателем ---

def list_notifications(user, unread_only=False, limit=None):
    query = Notification.query.filter_by(recipient_user_id=user.id, is_deleted=False)
    if unread_only:
        query = query.filter_by(read=False)
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def unread_count(user):
    return Notification.query.filter_by(recipient_user_id=user.id, is_deleted=False, read=False).count()


def _own_notification(user, notification_id):
    note = db.session.get(Notification, notification_id)
    if note is None or note.is_deleted:
        raise NotFound('Notification', notification_id)
    policy.require_recipient(user, note)
    return note


@transactional
def mark_read(user, notification_id, read=True):
    note = _own_notification(user, notification_id)
    note.read = read
    return note


@transactional
def mark_all_read(user):
    return (Notification.query
            .filter_by(recipient_user_id=user.id, is_deleted=False, read=False)
            .update({'read': True}, synchronize_session='fetch'))


@transactional
def delete_notification(user, notification_id):
    note = _own_notification(user, notification_id)
    note.is_deleted = True
    return note
