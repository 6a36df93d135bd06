from extensions import db
from sqlalchemy import CheckConstraint

ROLES = ('participant', 'judge', 'evaluator', 'director', 'admin')


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=True, index=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    role = db.Column(db.String, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    samples = db.relationship('Sample', backref='participant', lazy=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('participant', 'judge', 'evaluator', 'director', 'admin')",
            name="check_role"
        ),
    )

    @property
    def display_name(self):
        return self.name or self.email or self.code

    def __repr__(self):
        return f'<User {self.code} ({self.role})>'
