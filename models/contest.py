# models/contest.py

from extensions import db
from sqlalchemy import CheckConstraint


class Contest(db.Model):
    __tablename__ = 'contests'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    location = db.Column(db.String, nullable=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    # Конкурс переведен в финальный этап (оценка Top-N экспертами)
    final_evaluation = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    creator = db.relationship('User')
    samples = db.relationship('Sample', backref='contest', lazy=True)

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="check_contest_dates"),
    )
