from rankpoll.extensions import db


class PollOption(db.Model):
    __tablename__ = "poll_options"

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey("polls.id"), nullable=False)
    text = db.Column(db.String(200), nullable=False)
    # Declared ordinal, only used to break vote-count ties.
    position = db.Column(db.Integer, nullable=False, default=0)

    rankings = db.relationship("BallotRanking", backref="option", lazy=True)
