from rankpoll.extensions import db
from rankpoll.models.timestamps import utcnow


class Ballot(db.Model):
    __tablename__ = "ballots"

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey("polls.id"), nullable=False)
    # Null for anonymous ballots. Accounts live outside this service.
    user_id = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    rankings = db.relationship(
        "BallotRanking",
        backref="ballot",
        lazy=True,
        order_by="BallotRanking.rank",
        cascade="all, delete-orphan",
    )
