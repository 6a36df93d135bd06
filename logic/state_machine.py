# logic/state_machine.py
# Жизненный цикл образца

import logging
from datetime import datetime

from errors import IncompleteSample, InvalidTransition
from logic import notifications

logger = logging.getLogger(__name__)

# Разрешенные переходы. Обратных переходов нет.
TRANSITIONS = {
    'draft': {'submitted'},
    'submitted': {'received'},
    'received': {'physical_evaluation'},
    'physical_evaluation': {'approved', 'disqualified'},
    'approved': {'evaluated'},
    'disqualified': set(),
    'evaluated': set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Проверки выхода из черновика. Регистрируются модулем приема образцов (logic/intake.py)
DRAFT_EXIT_CHECKS = []

# Порядок статусов по конвейеру, для проверки "только вперед"
PIPELINE_ORDER = {
    'draft': 0,
    'submitted': 1,
    'received': 2,
    'physical_evaluation': 3,
    'approved': 4,
    'disqualified': 4,
    'evaluated': 5,
}


def draft_exit_check(func):
    """Декоратор: func(sample) вызывается перед любым выходом из 'draft'."""
    DRAFT_EXIT_CHECKS.append(func)
    return func


def can_transition(current, requested):
    return requested in TRANSITIONS.get(current, set())


def transition(sample, new_status):
    """
    Переводит образец в новый статус и рассылает уведомление о смене.

    Недопустимый переход поднимает InvalidTransition, статус не меняется.
    Выход из черновика проходит через DRAFT_EXIT_CHECKS, после них у образца
    обязан быть код отслеживания, иначе IncompleteSample.
    """
    current = sample.status
    if not can_transition(current, new_status):
        logger.warning('Rejected transition of sample %s: %s -> %s', sample.id, current, new_status)
        raise InvalidTransition(sample.id, current, new_status)

    if current == 'draft':
        for check in DRAFT_EXIT_CHECKS:
            check(sample)
        if not sample.tracking_code:
            raise IncompleteSample(f'Sample {sample.id} has no tracking code', missing=['tracking_code'])

    sample.status = new_status
    sample.updated_at = datetime.utcnow()
    logger.info('Sample %s: %s -> %s', sample.id, current, new_status)
    notifications.on_status_changed(sample, current, new_status)
    return sample


def is_terminal(status):
    return status in TERMINAL_STATUSES
