# logic/final.py
# Финальный этап: оценка экспертами образцов из Top-N конкурса

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import FinalEvaluation, Sample
from errors import ConstraintViolation
from logic import notifications, policy, ranking, scoring
from logic.base import get_or_404, transactional

logger = logging.getLogger(__name__)


def score_final_sheet(sample, sheet):
    """
    Шоколад оценивается взвешенной рубрикой, бобы и какао-масса - той же
    схемой, что и у судей. Возвращает (rubric, scores, breakdown, overall).
    """
    if sample.product_type == 'chocolate':
        overall, breakdown = scoring.compute_chocolate(sheet)
        scores = scoring.ChocolateSheet.model_validate(sheet or {}).model_dump()
        return 'chocolate', scores, breakdown, overall

    parsed = scoring.parse_sheet(sheet)
    result = scoring.compute_sensory_from_config(parsed, current_app.config)
    breakdown = dict(result.totals, defects_total=result.defects_total)
    return 'sensory', parsed.model_dump(), breakdown, result.overall_quality


@transactional
def save_final_evaluation(actor, sample_id, sheet, flavor_comments=None,
                          producer_recommendations=None, additional_positive=None):
    policy.require_role(actor, policy.EVALUATOR, policy.ADMIN)
    sample = get_or_404(Sample, sample_id)
    contest = sample.contest
    if not contest.final_evaluation:
        raise ConstraintViolation(f'Contest {contest.id} is not in the final evaluation stage')
    if contest.completed_at is not None:
        raise ConstraintViolation(f'Contest {contest.id} is already completed')
    if not ranking.in_top(sample):
        raise ConstraintViolation(f'Sample {sample.id} is not in the Top results of contest {contest.id}')

    rubric, scores, breakdown, overall = score_final_sheet(sample, sheet)

    evaluation = FinalEvaluation.query.filter_by(sample_id=sample.id, evaluator_id=actor.id).first()
    created = evaluation is None
    if created:
        evaluation = FinalEvaluation(sample=sample, evaluator=actor, contest_id=contest.id)
        db.session.add(evaluation)

    evaluation.evaluation_date = datetime.utcnow()
    evaluation.rubric = rubric
    evaluation.scores = scores
    evaluation.breakdown = breakdown
    evaluation.overall_quality = overall
    evaluation.flavor_comments = flavor_comments
    evaluation.producer_recommendations = producer_recommendations
    evaluation.additional_positive = additional_positive

    try:
        db.session.flush()
    except IntegrityError as exc:
        raise ConstraintViolation(
            f'Final evaluation for sample {sample.id} by evaluator {actor.id} already exists'
        ) from exc

    logger.info('Final evaluation %s sample %s evaluator %s: %.2f (%s)',
                'created' if created else 'updated', sample.id, actor.id, overall, rubric)
    notifications.on_final_saved(evaluation, created)
    return evaluation


def serialize_final(evaluation):
    return {
        'id': evaluation.id,
        'sample_id': evaluation.sample_id,
        'evaluator_id': evaluation.evaluator_id,
        'rubric': evaluation.rubric,
        'breakdown': evaluation.breakdown,
        'overall_quality': evaluation.overall_quality,
        'evaluation_date': evaluation.evaluation_date.isoformat() if evaluation.evaluation_date else None,
    }
