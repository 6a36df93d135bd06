# logic/sensory.py
# Сенсорная оценка образца судьей: сохранение (upsert), удаление, чтение

import logging
from datetime import date

from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import JudgeAssignment, Sample, SensoryEvaluation
from errors import ConstraintViolation, IncompleteSample, NotFound
from logic import notifications, policy, ranking, scoring
from logic.base import get_or_404, transactional

logger = logging.getLogger(__name__)

VERDICTS = ('Approved', 'Disqualified')


def _judge_assignment(sample, judge):
    assignment = JudgeAssignment.query.filter_by(sample_id=sample.id, judge_id=judge.id).first()
    if assignment is None:
        raise ConstraintViolation(f'Judge {judge.id} is not assigned to sample {sample.id}')
    return assignment


@transactional
def save_sensory_evaluation(actor, sample_id, sheet, verdict='Approved', reasons=None,
                            flavor_comments=None, producer_recommendations=None,
                            additional_positive=None, sample_notes=None, evaluation_date=None):
    """
    Сохраняет оценку судьи по образцу. Повторная отправка перезаписывает
    ту же строку (образец, судья).

    Сумма дефектов >= порога принудительно дает вердикт Disqualified и
    качество 0, что бы ни прислал судья. После записи рейтинг
    пересобирается в этой же транзакции.
    """
    policy.require_role(actor, policy.JUDGE)
    sample = get_or_404(Sample, sample_id)
    if sample.status != 'approved':
        raise ConstraintViolation(
            f"Sample {sample.id} is '{sample.status}'; sensory evaluation is closed"
        )
    assignment = _judge_assignment(sample, actor)
    if verdict not in VERDICTS:
        raise IncompleteSample(f"Unknown verdict '{verdict}'", missing=['verdict'])

    parsed = scoring.parse_sheet(sheet)
    result = scoring.compute_sensory_from_config(parsed, current_app.config)

    reasons = list(reasons or [])
    if result.auto_disqualified:
        verdict = 'Disqualified'
        reasons.extend(r for r in result.reasons if r not in reasons)
    elif verdict == 'Approved':
        reasons = []

    evaluation = SensoryEvaluation.query.filter_by(sample_id=sample.id, judge_id=actor.id).first()
    created = evaluation is None
    if created:
        evaluation = SensoryEvaluation(sample=sample, judge=actor)
        db.session.add(evaluation)

    evaluation.evaluation_date = evaluation_date or date.today()
    evaluation.evaluation_type = parsed.evaluation_type
    evaluation.scores = parsed.model_dump()
    for attr in scoring.SINGLE_ATTRIBUTES + ('roast_degree',):
        setattr(evaluation, attr, getattr(parsed, attr))
    evaluation.sweetness = parsed.sweetness
    for column, value in result.totals.items():
        setattr(evaluation, column, value)
    evaluation.defects_total = result.defects_total
    evaluation.overall_quality = result.overall_quality
    evaluation.verdict = verdict
    evaluation.disqualification_reasons = reasons
    evaluation.flavor_comments = flavor_comments
    evaluation.producer_recommendations = producer_recommendations
    evaluation.additional_positive = additional_positive
    evaluation.sample_notes = sample_notes

    try:
        db.session.flush()
    except IntegrityError as exc:
        # Параллельная вставка той же пары (образец, судья)
        raise ConstraintViolation(
            f'Sensory evaluation for sample {sample.id} by judge {actor.id} already exists'
        ) from exc

    assignment.status = 'completed'
    logger.info(
        'Sensory evaluation %s sample %s judge %s: overall %.2f, defects %.2f, %s',
        'created' if created else 'updated', sample.id, actor.id,
        result.overall_quality, result.defects_total, verdict,
    )

    ranking.recompute_top_results()
    notifications.on_sensory_saved(evaluation, created)
    return evaluation


@transactional
def delete_sensory_evaluation(actor, evaluation_id):
    evaluation = db.session.get(SensoryEvaluation, evaluation_id)
    if evaluation is None:
        raise NotFound('SensoryEvaluation', evaluation_id)
    sample = evaluation.sample
    policy.require_contest_manager(actor, sample.contest)
    if sample.status != 'approved':
        raise ConstraintViolation(f"Sample {sample.id} is '{sample.status}'; evaluations are frozen")

    assignment = JudgeAssignment.query.filter_by(sample_id=sample.id, judge_id=evaluation.judge_id).first()
    if assignment is not None:
        assignment.status = 'assigned'
    db.session.delete(evaluation)
    db.session.flush()
    logger.info('Sensory evaluation %s of sample %s deleted', evaluation_id, sample.id)

    ranking.recompute_top_results()


def get_sensory_evaluation(actor, sample_id, judge_id=None):
    sample = get_or_404(Sample, sample_id)
    judge_id = judge_id or actor.id
    if actor.id != judge_id:
        policy.require_contest_manager(actor, sample.contest)
    evaluation = SensoryEvaluation.query.filter_by(sample_id=sample.id, judge_id=judge_id).first()
    if evaluation is None:
        raise NotFound('SensoryEvaluation', f'{sample.id}/{judge_id}')
    return evaluation


def evaluations_for_sample(actor, sample_id):
    sample = get_or_404(Sample, sample_id)
    policy.require_sample_viewer(actor, sample)
    return (SensoryEvaluation.query
            .filter_by(sample_id=sample.id)
            .order_by(SensoryEvaluation.evaluation_date, SensoryEvaluation.id)
            .all())


def serialize_evaluation(evaluation):
    data = {
        'id': evaluation.id,
        'sample_id': evaluation.sample_id,
        'judge_id': evaluation.judge_id,
        'evaluation_date': evaluation.evaluation_date.isoformat() if evaluation.evaluation_date else None,
        'evaluation_type': evaluation.evaluation_type,
        'scores': evaluation.scores,
        'defects_total': evaluation.defects_total,
        'overall_quality': evaluation.overall_quality,
        'verdict': evaluation.verdict,
        'disqualification_reasons': evaluation.disqualification_reasons,
    }
    for column in ('cacao', 'bitterness', 'astringency', 'caramel_panela', 'roast_degree', 'sweetness'):
        data[column] = getattr(evaluation, column)
    for column in SensoryEvaluation.__table__.columns.keys():
        if column.endswith('_total'):
            data[column] = getattr(evaluation, column)
    return data
