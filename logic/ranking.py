# logic/ranking.py
# Рейтинг конкурса (Top-N), пересобирается целиком при каждой записи сенсорной оценки

"""
Таблица top_results - производная. Она не правится частично: каждый раз
удаляется всё содержимое и вставляется заново посчитанный рейтинг, в той же
транзакции, что и запись, вызвавшая пересчет.

Порядок внутри конкурса: средний балл по убыванию, затем дата последней
оценки по убыванию, затем id образца (чтобы порядок был стабильным).
"""

import logging
from collections import defaultdict
from datetime import datetime

from flask import current_app
from sqlalchemy import func

from extensions import db
from models import FinalEvaluation, Sample, SensoryEvaluation, TopResult
from errors import RankingRecomputeFailure
from logic import notifications

logger = logging.getLogger(__name__)


def _sort_key(row):
    latest = row['latest_evaluation_date']
    return (-row['average_score'], -(latest.toordinal() if latest else 0), row['sample_id'])


def compute_ranking(top_n):
    """
    Считает рейтинг без записи в базу.
    Возвращает {contest_id: [строки по порядку мест]}.
    """
    aggregates = (
        db.session.query(
            SensoryEvaluation.sample_id,
            func.avg(SensoryEvaluation.overall_quality),
            func.count(SensoryEvaluation.id),
            func.max(SensoryEvaluation.evaluation_date),
            Sample.contest_id,
        )
        .join(Sample, Sample.id == SensoryEvaluation.sample_id)
        .filter(SensoryEvaluation.verdict == 'Approved')
        .filter(SensoryEvaluation.overall_quality.isnot(None))
        .group_by(SensoryEvaluation.sample_id, Sample.contest_id)
        .all()
    )

    by_contest = defaultdict(list)
    for sample_id, average, count, latest, contest_id in aggregates:
        by_contest[contest_id].append({
            'sample_id': sample_id,
            'contest_id': contest_id,
            'average_score': round(float(average), 2),
            'evaluations_count': count,
            'latest_evaluation_date': latest,
        })

    ranking = {}
    for contest_id, rows in by_contest.items():
        rows.sort(key=_sort_key)
        rows = rows[:top_n]
        for position, row in enumerate(rows, start=1):
            row['rank'] = position
        ranking[contest_id] = rows
    return ranking


def recompute_top_results(top_n=None, notify_top=None):
    """
    Полная пересборка top_results внутри текущей транзакции.

    Ошибка любого шага поднимает RankingRecomputeFailure; вызывающая операция
    откатывается целиком вместе с записью, которая вызвала пересчет.
    """
    config = current_app.config
    top_n = top_n or config['RANKING_TOP_N']
    notify_top = config['RANKING_NOTIFY_TOP'] if notify_top is None else notify_top

    try:
        previous = dict(db.session.query(TopResult.sample_id, TopResult.rank).all())
        ranking = compute_ranking(top_n)

        # Удаление выполняется сразу, до вставки новых мест
        TopResult.query.delete()

        now = datetime.utcnow()
        inserted = []
        for rows in ranking.values():
            for row in rows:
                result = TopResult(updated_at=now, **row)
                result.sample = db.session.get(Sample, row['sample_id'])
                db.session.add(result)
                inserted.append(result)
        db.session.flush()
    except Exception as exc:
        logger.exception('Ranking recompute failed')
        raise RankingRecomputeFailure(f'Ranking recompute failed: {exc}') from exc

    for result in inserted:
        if result.rank <= notify_top and previous.get(result.sample_id) != result.rank:
            notifications.on_top_rank(result)

    logger.info('Ranking rebuilt: %d row(s) across %d contest(s)', len(inserted), len(ranking))
    return inserted


def top_results_for_contest(contest_id):
    return (TopResult.query
            .filter_by(contest_id=contest_id)
            .order_by(TopResult.rank)
            .all())


def in_top(sample):
    return db.session.get(TopResult, sample.id) is not None


def serialize_top_result(result):
    sample = result.sample
    return {
        'rank': result.rank,
        'sample_id': result.sample_id,
        'tracking_code': sample.tracking_code if sample else None,
        'product_type': sample.product_type if sample else None,
        'average_score': result.average_score,
        'evaluations_count': result.evaluations_count,
        'latest_evaluation_date': (
            result.latest_evaluation_date.isoformat() if result.latest_evaluation_date else None
        ),
    }


def final_ranking(contest_id):
    """Рейтинг финального этапа: средняя финальная оценка по образцу."""
    rows = (
        db.session.query(
            FinalEvaluation.sample_id,
            func.avg(FinalEvaluation.overall_quality),
            func.count(FinalEvaluation.id),
            func.max(FinalEvaluation.evaluation_date),
        )
        .filter(FinalEvaluation.contest_id == contest_id)
        .group_by(FinalEvaluation.sample_id)
        .all()
    )
    ranking = [
        {
            'sample_id': sample_id,
            'average_score': round(float(average), 2),
            'evaluations_count': count,
            'latest_evaluation_date': latest.date() if latest else None,
        }
        for sample_id, average, count, latest in rows
    ]
    ranking.sort(key=_sort_key)
    for position, row in enumerate(ranking, start=1):
        row['rank'] = position
    return ranking
