# models/physical_evaluation.py

from datetime import datetime

from extensions import db
from sqlalchemy import CheckConstraint


class PhysicalEvaluation(db.Model):
    __tablename__ = 'physical_evaluations'

    id = db.Column(db.Integer, primary_key=True)
    # Ровно одна физическая оценка на образец
    sample_id = db.Column(db.Integer, db.ForeignKey('samples.id', ondelete='RESTRICT'), nullable=False, unique=True)

    undesirable_aromas = db.Column(db.JSON, nullable=False, default=list)
    has_undesirable_aromas = db.Column(db.Boolean, nullable=False, default=False)
    typical_odors = db.Column(db.JSON, nullable=False, default=list)
    atypical_odors = db.Column(db.JSON, nullable=False, default=list)
    percentage_humidity = db.Column(db.Float, nullable=False, default=0)
    broken_grains = db.Column(db.Float, nullable=False, default=0)
    violated_grains = db.Column(db.Boolean, nullable=False, default=False)
    flat_grains = db.Column(db.Float, nullable=False, default=0)
    affected_grains_insects = db.Column(db.Integer, nullable=False, default=0)
    well_fermented_beans = db.Column(db.Float, nullable=False, default=0)
    lightly_fermented_beans = db.Column(db.Float, nullable=False, default=0)
    purple_beans = db.Column(db.Float, nullable=False, default=0)
    slaty_beans = db.Column(db.Float, nullable=False, default=0)
    internal_moldy_beans = db.Column(db.Float, nullable=False, default=0)
    over_fermented_beans = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=False, default='')
    evaluated_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    evaluated_at = db.Column(db.DateTime, default=datetime.utcnow)

    global_evaluation = db.Column(db.String(20), nullable=False, default='passed')
    disqualification_reasons = db.Column(db.JSON, nullable=False, default=list)
    warnings = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    evaluator = db.relationship('User')

    __table_args__ = (
        CheckConstraint("global_evaluation IN ('passed', 'disqualified')", name="check_global_evaluation"),
        CheckConstraint("affected_grains_insects >= 0", name="check_insects"),
    )
