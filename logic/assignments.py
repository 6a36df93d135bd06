# logic/assignments.py
# Назначение судей на образцы и производный статус оценки образца

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import JudgeAssignment, Sample, User
from errors import ConstraintViolation, PermissionDenied
from logic import notifications, policy, state_machine
from logic.base import get_or_404, transactional

logger = logging.getLogger(__name__)


def _check_judge(user):
    if user.role != policy.JUDGE:
        raise PermissionDenied(f'User {user.id} is not a judge and cannot be assigned')


def _check_sample(sample):
    if sample.status != 'approved':
        raise ConstraintViolation(
            f"Sample {sample.id} is '{sample.status}'; only approved samples take judge assignments"
        )


@transactional
def assign_judges(actor, sample_ids, judge_ids):
    """
    Назначает каждого судью на каждый образец.

    Одиночное и массовое назначение - одна и та же операция. Уже существующая
    пара (образец, судья) пропускается, второй строки не появляется.
    Возвращает список созданных назначений.
    """
    samples = [get_or_404(Sample, sid) for sid in dict.fromkeys(sample_ids)]
    judges = [get_or_404(User, jid) for jid in dict.fromkeys(judge_ids)]
    for sample in samples:
        policy.require_contest_manager(actor, sample.contest)
        _check_sample(sample)
    for judge in judges:
        _check_judge(judge)

    created = []
    for sample in samples:
        existing = {a.judge_id for a in JudgeAssignment.query.filter_by(sample_id=sample.id)}
        for judge in judges:
            if judge.id in existing:
                continue
            assignment = JudgeAssignment(
                sample=sample,
                judge=judge,
                assigned_by=actor.id,
                status='assigned',
            )
            db.session.add(assignment)
            created.append(assignment)
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise ConstraintViolation('Judge assignment already exists') from exc

    for assignment in created:
        notifications.on_judge_assigned(assignment)
    logger.info('%d new assignment(s) for samples %s', len(created), [s.id for s in samples])
    return created


def assign_judge(actor, sample_id, judge_id):
    created = assign_judges(actor, [sample_id], [judge_id])
    if created:
        return created[0]
    return JudgeAssignment.query.filter_by(sample_id=sample_id, judge_id=judge_id).first()


def _assignment(sample_id, judge_id):
    assignment = JudgeAssignment.query.filter_by(sample_id=sample_id, judge_id=judge_id).first()
    if assignment is None:
        raise ConstraintViolation(f'Judge {judge_id} is not assigned to sample {sample_id}')
    return assignment


@transactional
def unassign_judge(actor, sample_id, judge_id):
    sample = get_or_404(Sample, sample_id)
    policy.require_contest_manager(actor, sample.contest)
    assignment = _assignment(sample.id, judge_id)
    if any(ev.judge_id == judge_id for ev in sample.sensory_evaluations):
        raise ConstraintViolation(f'Judge {judge_id} already evaluated sample {sample.id}')
    db.session.delete(assignment)
    logger.info('Judge %s unassigned from sample %s', judge_id, sample.id)


@transactional
def start_evaluation(actor, sample_id):
    """Судья открыл образец: assigned -> evaluating."""
    sample = get_or_404(Sample, sample_id)
    policy.require_role(actor, policy.JUDGE)
    assignment = _assignment(sample.id, actor.id)
    if assignment.status == 'assigned':
        assignment.status = 'evaluating'
    return assignment


def derived_status(sample):
    """
    Статус оценки образца, вычисляемый по назначениям:
    unassigned, assigned, evaluating или evaluated.
    """
    if sample.status == 'evaluated':
        return 'evaluated'
    statuses = [a.status for a in sample.assignments]
    if not statuses:
        return 'unassigned'
    if all(s == 'completed' for s in statuses):
        return 'evaluated'
    if all(s == 'assigned' for s in statuses):
        return 'assigned'
    return 'evaluating'


def judge_workload(judge_ids=None):
    """Число открытых (не завершенных) назначений по каждому судье."""
    query = (db.session.query(JudgeAssignment.judge_id, func.count(JudgeAssignment.id))
             .filter(JudgeAssignment.status != 'completed'))
    if judge_ids is not None:
        query = query.filter(JudgeAssignment.judge_id.in_(judge_ids))
    counts = dict(query.group_by(JudgeAssignment.judge_id).all())
    judges = User.query.filter_by(role=policy.JUDGE)
    if judge_ids is not None:
        judges = judges.filter(User.id.in_(judge_ids))
    return {judge.id: counts.get(judge.id, 0) for judge in judges.order_by(User.id)}


def assignments_for_judge(judge, status=None):
    query = JudgeAssignment.query.filter_by(judge_id=judge.id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(JudgeAssignment.assigned_at, JudgeAssignment.id).all()


def _finalize(sample):
    statuses = [a.status for a in sample.assignments]
    if not statuses or any(s != 'completed' for s in statuses):
        raise ConstraintViolation(f'Sample {sample.id} still has judges without a completed evaluation')
    return state_machine.transition(sample, 'evaluated')


@transactional
def finalize_sample(actor, sample_id):
    """approved -> evaluated, когда все назначенные судьи закончили."""
    sample = get_or_404(Sample, sample_id)
    policy.require_contest_manager(actor, sample.contest)
    return _finalize(sample)


def finalize_ready_samples(contest):
    """Переводит в evaluated все одобренные образцы конкурса, где оценка завершена."""
    finalized = []
    for sample in Sample.query.filter_by(contest_id=contest.id, status='approved').order_by(Sample.id):
        if derived_status(sample) == 'evaluated':
            finalized.append(_finalize(sample))
    return finalized
