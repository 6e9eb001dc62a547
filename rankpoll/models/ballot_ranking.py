from rankpoll.extensions import db


class BallotRanking(db.Model):
    __tablename__ = "ballot_rankings"

    id = db.Column(db.Integer, primary_key=True)
    ballot_id = db.Column(db.Integer, db.ForeignKey("ballots.id"), nullable=False)
    option_id = db.Column(db.Integer, db.ForeignKey("poll_options.id"), nullable=False)
    rank = db.Column(db.Integer, nullable=False)
