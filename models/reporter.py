"""models/reporter.py — SQLAlchemy model for citizens who submit reports."""
import datetime
from extensions import db


class Reporter(db.Model):
    __tablename__ = "reporter"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True)
    trust_score = db.Column(db.Integer, default=100, nullable=False)   # 0..1000
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "trust_score": self.trust_score,
        }

    def __repr__(self):
        return f"<Reporter {self.id} trust={self.trust_score}>"
