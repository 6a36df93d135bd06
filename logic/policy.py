# logic/policy.py
# Правила доступа по ролям. Применяются на входе каждой операции движка.

from errors import PermissionDenied
from models import JudgeAssignment

ADMIN = 'admin'
DIRECTOR = 'director'
JUDGE = 'judge'
EVALUATOR = 'evaluator'
PARTICIPANT = 'participant'

ALL_ROLES = (PARTICIPANT, JUDGE, EVALUATOR, DIRECTOR, ADMIN)


def is_admin(user):
    return user is not None and user.role == ADMIN


def is_staff(user):
    return user is not None and user.role in (ADMIN, DIRECTOR)


def require_role(user, *roles):
    if user is None or user.role not in roles:
        raise PermissionDenied(f"Role '{getattr(user, 'role', None)}' is not allowed to do this")


def can_manage_contest(user, contest):
    # Директор управляет только своими конкурсами, админ - всеми
    if is_admin(user):
        return True
    return user is not None and user.role == DIRECTOR and contest.created_by == user.id


def require_contest_manager(user, contest):
    if not can_manage_contest(user, contest):
        raise PermissionDenied(f'User is not allowed to manage contest {contest.id}')


def require_sample_owner(user, sample):
    if is_admin(user):
        return
    if user is None or user.role != PARTICIPANT or sample.user_id != user.id:
        raise PermissionDenied(f'User does not own sample {sample.id}')


def is_assigned_judge(user, sample):
    if user is None or user.role != JUDGE:
        return False
    return JudgeAssignment.query.filter_by(sample_id=sample.id, judge_id=user.id).first() is not None


def can_view_sample(user, sample):
    if user is None:
        return False
    if can_manage_contest(user, sample.contest):
        return True
    if user.role == PARTICIPANT:
        return sample.user_id == user.id
    if user.role == JUDGE:
        return is_assigned_judge(user, sample)
    if user.role == EVALUATOR:
        return bool(sample.contest.final_evaluation)
    return False


def require_sample_viewer(user, sample):
    if not can_view_sample(user, sample):
        raise PermissionDenied(f'User may not view sample {sample.id}')


def require_recipient(user, notification):
    if user is None or notification.recipient_user_id != user.id:
        raise PermissionDenied('Only the recipient may change this notification')
