# models/sensory_evaluation.py

from datetime import date, datetime

from extensions import db
from sqlalchemy import CheckConstraint


class SensoryEvaluation(db.Model):
    __tablename__ = 'sensory_evaluations'

    id = db.Column(db.Integer, primary_key=True)
    sample_id = db.Column(db.Integer, db.ForeignKey('samples.id', ondelete='RESTRICT'), nullable=False, index=True)
    judge_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    evaluation_date = db.Column(db.Date, nullable=False, default=date.today)
    evaluation_type = db.Column(db.String(20), nullable=False, default='cocoa_mass')
    sample_notes = db.Column(db.Text, nullable=True)

    # Сырые под-оценки судьи по группам, как их прислал судья
    scores = db.Column(db.JSON, nullable=False, default=dict)

    cacao = db.Column(db.Float, nullable=False, default=0)
    bitterness = db.Column(db.Float, nullable=False, default=0)
    astringency = db.Column(db.Float, nullable=False, default=0)
    caramel_panela = db.Column(db.Float, nullable=False, default=0)
    roast_degree = db.Column(db.Float, nullable=False, default=0)
    sweetness = db.Column(db.Float, nullable=True)

    acidity_total = db.Column(db.Float, nullable=False, default=0)
    fresh_fruit_total = db.Column(db.Float, nullable=False, default=0)
    brown_fruit_total = db.Column(db.Float, nullable=False, default=0)
    vegetal_total = db.Column(db.Float, nullable=False, default=0)
    floral_total = db.Column(db.Float, nullable=False, default=0)
    wood_total = db.Column(db.Float, nullable=False, default=0)
    spice_total = db.Column(db.Float, nullable=False, default=0)
    nut_total = db.Column(db.Float, nullable=False, default=0)
    defects_total = db.Column(db.Float, nullable=False, default=0)

    overall_quality = db.Column(db.Float, nullable=True)

    flavor_comments = db.Column(db.Text, nullable=True)
    producer_recommendations = db.Column(db.Text, nullable=True)
    additional_positive = db.Column(db.Text, nullable=True)

    verdict = db.Column(db.String(20), nullable=False, default='Approved')
    disqualification_reasons = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    judge = db.relationship('User')

    __table_args__ = (
        # Единственная защита от двойной отправки при конкурентной записи
        db.UniqueConstraint('sample_id', 'judge_id', name='unique_sample_judge'),
        CheckConstraint("verdict IN ('Approved', 'Disqualified')", name="check_sensory_verdict"),
        CheckConstraint("evaluation_type IN ('cocoa_mass', 'chocolate')", name="check_evaluation_type"),
        CheckConstraint("defects_total >= 0 AND defects_total <= 10", name="check_defects_total"),
        CheckConstraint(
            "overall_quality IS NULL OR (overall_quality >= 0 AND overall_quality <= 10)",
            name="check_overall_quality"
        ),
    )
