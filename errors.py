# errors.py
# Ошибки движка оценки образцов

"""
Иерархия ошибок движка.

Все бизнес-проверки выполняются в той же транзакции, что и запись, которая их
вызвала: любая из этих ошибок откатывает запись целиком. Дисквалификация
образца ошибкой не является - это успешная запись с отрицательным вердиктом.
"""


class EngineError(Exception):
    """Базовая ошибка движка."""

    status_code = 400
    kind = 'engine_error'

    def __init__(self, message):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'error': self.kind, 'message': self.message}


class InvalidTransition(EngineError):
    """Недопустимый переход статуса образца."""

    status_code = 409
    kind = 'invalid_transition'

    def __init__(self, sample_id, current, requested):
        self.sample_id = sample_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Sample {sample_id} cannot move from '{current}' to '{requested}'"
        )


class IncompleteSample(EngineError):
    """Образец вне черновика без обязательных полей своего типа продукта."""

    status_code = 422
    kind = 'incomplete_sample'

    def __init__(self, message, missing=None):
        self.missing = list(missing or [])
        super().__init__(message)

    def to_dict(self):
        data = super().to_dict()
        data['missing'] = self.missing
        return data


class ConstraintViolation(EngineError):
    """Дубликат по уникальной паре или запись в замороженную сущность."""

    status_code = 409
    kind = 'constraint_violation'


class ExclusivityViolation(EngineError):
    status_code = 409
    kind = 'exclusivity_violation'


class DirectorAlreadyActive(ExclusivityViolation):
    """У директора уже есть конкурс, который идет сегодня."""

    def __init__(self, director_id, contest_id):
        self.director_id = director_id
        self.contest_id = contest_id
        super().__init__(
            'Director already has an active contest. '
            'Only one active contest per director is allowed.'
        )


class RankingRecomputeFailure(EngineError):
    status_code = 500
    kind = 'ranking_recompute_failure'


class PermissionDenied(EngineError):
    status_code = 403
    kind = 'permission_denied'


class NotFound(EngineError):
    status_code = 404
    kind = 'not_found'

    def __init__(self, entity, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f'{entity} with ID {entity_id} not found')
