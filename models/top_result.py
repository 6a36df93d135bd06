# models/top_result.py

from datetime import datetime

from extensions import db
from sqlalchemy import CheckConstraint


class TopResult(db.Model):
    """
    Материализованный рейтинг конкурса. Пишется только logic/ranking.py,
    который целиком пересобирает таблицу.
    """
    __tablename__ = 'top_results'

    sample_id = db.Column(db.Integer, db.ForeignKey('samples.id', ondelete='CASCADE'), primary_key=True)
    contest_id = db.Column(db.Integer, db.ForeignKey('contests.id', ondelete='SET NULL'), nullable=True, index=True)
    average_score = db.Column(db.Float, nullable=False)
    evaluations_count = db.Column(db.Integer, nullable=False, default=0)
    latest_evaluation_date = db.Column(db.Date, nullable=True)
    rank = db.Column(db.Integer, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    sample = db.relationship('Sample')

    __table_args__ = (
        db.UniqueConstraint('contest_id', 'rank', name='unique_contest_rank'),
        CheckConstraint("rank >= 1", name="check_rank"),
    )
