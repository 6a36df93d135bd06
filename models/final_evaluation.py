# models/final_evaluation.py

from datetime import datetime

from extensions import db
from sqlalchemy import CheckConstraint


class FinalEvaluation(db.Model):
    __tablename__ = 'final_evaluations'

    id = db.Column(db.Integer, primary_key=True)
    contest_id = db.Column(db.Integer, db.ForeignKey('contests.id', ondelete='CASCADE'), nullable=False, index=True)
    sample_id = db.Column(db.Integer, db.ForeignKey('samples.id', ondelete='RESTRICT'), nullable=False, index=True)
    evaluator_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    evaluation_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # 'chocolate' - взвешенная рубрика, 'sensory' - та же схема, что и у судей
    rubric = db.Column(db.String(20), nullable=False)
    scores = db.Column(db.JSON, nullable=False, default=dict)
    # Оценки категорий рубрики (для шоколада) или итоги групп (для бобов/какао-массы)
    breakdown = db.Column(db.JSON, nullable=False, default=dict)
    overall_quality = db.Column(db.Float, nullable=False)

    flavor_comments = db.Column(db.Text, nullable=True)
    producer_recommendations = db.Column(db.Text, nullable=True)
    additional_positive = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    evaluator = db.relationship('User')
    contest = db.relationship('Contest')

    __table_args__ = (
        db.UniqueConstraint('sample_id', 'evaluator_id', name='unique_sample_evaluator'),
        CheckConstraint("rubric IN ('chocolate', 'sensory')", name="check_final_rubric"),
        CheckConstraint("overall_quality >= 0 AND overall_quality <= 10", name="check_final_quality"),
    )
