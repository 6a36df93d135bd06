# models/sample.py

from datetime import datetime

from extensions import db, in_clause
from sqlalchemy import CheckConstraint

SAMPLE_STATUSES = (
    'draft', 'submitted', 'received', 'physical_evaluation',
    'approved', 'disqualified', 'evaluated',
)
PRODUCT_TYPES = ('bean', 'liquor', 'chocolate')


class Sample(db.Model):
    __tablename__ = 'samples'

    id = db.Column(db.Integer, primary_key=True)
    contest_id = db.Column(db.Integer, db.ForeignKey('contests.id', ondelete='RESTRICT'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False, index=True)
    product_type = db.Column(db.String(20), nullable=False, default='bean')
    # Поля, зависящие от типа продукта. Проверяются схемой в logic/intake.py
    details = db.Column(db.JSON, nullable=False, default=dict)
    status = db.Column(db.String(30), nullable=False, default='draft', index=True)
    # У черновика кода еще нет, он выдается при отправке
    tracking_code = db.Column(db.String(20), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Образец не удаляется, пока на него ссылаются оценки (passive_deletes + RESTRICT)
    physical_evaluation = db.relationship('PhysicalEvaluation', backref='sample', uselist=False, passive_deletes=True)
    assignments = db.relationship('JudgeAssignment', backref='sample', lazy=True, passive_deletes=True)
    sensory_evaluations = db.relationship('SensoryEvaluation', backref='sample', lazy=True, passive_deletes=True)
    final_evaluations = db.relationship('FinalEvaluation', backref='sample', lazy=True, passive_deletes=True)

    __table_args__ = (
        CheckConstraint(in_clause("status", SAMPLE_STATUSES), name="check_sample_status"),
        CheckConstraint(in_clause("product_type", PRODUCT_TYPES), name="check_product_type"),
        CheckConstraint("status = 'draft' OR tracking_code IS NOT NULL", name="check_submitted_tracking_code"),
    )

    @property
    def internal_code(self):
        created = self.created_at or datetime.utcnow()
        return f'INT-{created:%Y%m}-{self.id:04d}'

    def __repr__(self):
        return f'<Sample {self.id} {self.status}>'
