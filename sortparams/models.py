from datetime import datetime as dt, timezone

from sortparams import db


def utc_now():
    return dt.now(timezone.utc)


class Person(db.Model):
    """People listed by the sortable directory endpoints."""
    __tablename__ = 'people'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), nullable=False, unique=True)
    firstname = db.Column(db.String(100), nullable=True)
    lastname = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String(30), nullable=False, default='member')
    created_at = db.Column(db.DateTime, default=utc_now)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'username': self.username,
            'firstname': self.firstname,
            'lastname': self.lastname,
            'role': self.role,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Person {self.username}>'
