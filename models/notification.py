# models/notification.py

from datetime import datetime

from extensions import db, in_clause
from sqlalchemy import CheckConstraint

NOTIFICATION_TYPES = (
    'user_registered',
    'sample_added',
    'sample_received',
    'sample_disqualified',
    'sample_approved',
    'sample_evaluated',
    'sample_assigned_to_judge',
    'judge_evaluated_sample',
    'evaluator_evaluated_sample',
    'contest_created',
    'contest_completed',
    'contest_final_stage',
    'final_ranking_top3',
)
PRIORITIES = ('low', 'medium', 'high', 'urgent')


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    recipient_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    type = db.Column(db.String(40), nullable=False)
    priority = db.Column(db.String(10), nullable=False, default='medium')

    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    details = db.Column(db.Text, nullable=True)

    related_sample_id = db.Column(db.Integer, db.ForeignKey('samples.id', ondelete='SET NULL'), nullable=True)
    related_contest_id = db.Column(db.Integer, db.ForeignKey('contests.id', ondelete='SET NULL'), nullable=True)
    related_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    action_required = db.Column(db.Boolean, nullable=False, default=False)
    read = db.Column(db.Boolean, nullable=False, default=False)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    recipient = db.relationship('User', foreign_keys=[recipient_user_id])

    __table_args__ = (
        CheckConstraint(in_clause("type", NOTIFICATION_TYPES), name="check_notification_type"),
        CheckConstraint(in_clause("priority", PRIORITIES), name="check_notification_priority"),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'priority': self.priority,
            'title': self.title,
            'message': self.message,
            'details': self.details,
            'related_sample_id': self.related_sample_id,
            'related_contest_id': self.related_contest_id,
            'related_user_id': self.related_user_id,
            'action_required': self.action_required,
            'read': self.read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
