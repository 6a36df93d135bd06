from datetime import datetime

from extensions import db, in_clause
from sqlalchemy import CheckConstraint

ASSIGNMENT_STATUSES = ('assigned', 'evaluating', 'completed')


class JudgeAssignment(db.Model):
    __tablename__ = 'judge_assignments'
    id = db.Column(db.Integer, primary_key=True)
    sample_id = db.Column(db.Integer, db.ForeignKey('samples.id', ondelete='RESTRICT'), nullable=False, index=True)
    judge_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    # Статус судьи не зависит от статуса самого образца
    status = db.Column(db.String(20), nullable=False, default='assigned')
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow)

    judge = db.relationship('User', foreign_keys=[judge_id])

    __table_args__ = (
        db.UniqueConstraint('sample_id', 'judge_id', name='unique_sample_judge_assignment'),
        CheckConstraint(in_clause("status", ASSIGNMENT_STATUSES), name="check_assignment_status"),
    )
