# logic/contests.py
# Конкурсы: создание с проверкой "один активный конкурс на директора", финальный этап, завершение

import logging
from datetime import datetime

from extensions import db
from models import Contest
from errors import ConstraintViolation, DirectorAlreadyActive
from logic import assignments, notifications, policy
from logic.base import get_or_404, today as current_day, transactional

logger = logging.getLogger(__name__)


def active_contest_of(user, day=None):
    """Конкурс директора, который идет в этот день (start <= day <= end), или None."""
    day = day or current_day()
    return (Contest.query
            .filter(Contest.created_by == user.id)
            .filter(Contest.start_date <= day, Contest.end_date >= day)
            .order_by(Contest.start_date)
            .first())


def director_has_active_contest(user, day=None):
    return active_contest_of(user, day) is not None


@transactional
def create_contest(actor, name, start_date, end_date, location=None, today=None):
    """
    Создает конкурс.

    Директор может владеть только одним конкурсом, который идет сегодня.
    Проверка делается только при создании, уже созданные конкурсы не
    пересматриваются. Админ от проверки освобожден.
    """
    policy.require_role(actor, policy.DIRECTOR, policy.ADMIN)
    if not name or not str(name).strip():
        raise ConstraintViolation('Contest name is required')
    if start_date > end_date:
        raise ConstraintViolation('Contest start date must not be after its end date')

    if actor.role == policy.DIRECTOR:
        active = active_contest_of(actor, today)
        if active is not None:
            logger.warning('Director %s already runs contest %s', actor.id, active.id)
            raise DirectorAlreadyActive(actor.id, active.id)

    contest = Contest(
        name=str(name).strip(),
        location=location,
        start_date=start_date,
        end_date=end_date,
        created_by=actor.id,
    )
    db.session.add(contest)
    db.session.flush()
    logger.info('Contest %s "%s" created by user %s', contest.id, contest.name, actor.id)
    notifications.on_contest_created(contest)
    return contest


@transactional
def enter_final_stage(actor, contest_id):
    """
    Включает финальный этап: эксперты получают уведомление, а образцы, у
    которых все судьи закончили, переходят в evaluated.
    """
    contest = get_or_404(Contest, contest_id)
    policy.require_contest_manager(actor, contest)
    if contest.completed_at is not None:
        raise ConstraintViolation(f'Contest {contest.id} is already completed')
    if contest.final_evaluation:
        return contest

    contest.final_evaluation = True
    finalized = assignments.finalize_ready_samples(contest)
    logger.info('Contest %s entered final stage, %d sample(s) finalized', contest.id, len(finalized))
    notifications.on_contest_final_stage(contest)
    return contest


@transactional
def complete_contest(actor, contest_id):
    contest = get_or_404(Contest, contest_id)
    policy.require_contest_manager(actor, contest)
    if contest.completed_at is not None:
        raise ConstraintViolation(f'Contest {contest.id} is already completed')
    contest.completed_at = datetime.utcnow()
    logger.info('Contest %s completed', contest.id)
    notifications.on_contest_completed(contest)
    return contest


def list_contests(include_completed=True):
    query = Contest.query
    if not include_completed:
        query = query.filter(Contest.completed_at.is_(None))
    return query.order_by(Contest.start_date.desc(), Contest.id.desc()).all()


def serialize_contest(contest):
    return {
        'id': contest.id,
        'name': contest.name,
        'location': contest.location,
        'start_date': contest.start_date.isoformat(),
        'end_date': contest.end_date.isoformat(),
        'created_by': contest.created_by,
        'final_evaluation': contest.final_evaluation,
        'completed_at': contest.completed_at.isoformat() if contest.completed_at else None,
    }
