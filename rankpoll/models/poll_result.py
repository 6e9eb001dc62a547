from rankpoll.extensions import db
from rankpoll.models.timestamps import utcnow


class PollResult(db.Model):
    __tablename__ = "poll_results"

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(
        db.Integer, db.ForeignKey("polls.id"), nullable=False, unique=True
    )
    total_ballots = db.Column(db.Integer, nullable=False)
    total_rounds = db.Column(db.Integer, nullable=False, default=0)
    winner_option_id = db.Column(db.Integer, nullable=True)
    is_draw = db.Column(db.Boolean, nullable=False, default=False)
    tie_break_applied = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    values = db.relationship(
        "PollResultValue",
        backref="result",
        lazy=True,
        order_by=lambda: (
            PollResultValue.round_number,
            PollResultValue.votes.desc(),
            PollResultValue.tie_breaker_position,
        ),
        cascade="all, delete-orphan",
    )


class PollResultValue(db.Model):
    __tablename__ = "poll_result_values"

    id = db.Column(db.Integer, primary_key=True)
    poll_result_id = db.Column(
        db.Integer, db.ForeignKey("poll_results.id"), nullable=False
    )
    option_id = db.Column(db.Integer, db.ForeignKey("poll_options.id"), nullable=False)
    round_number = db.Column(db.Integer, nullable=False)
    # Snapshot of the option text at tally time.
    option_text = db.Column(db.String(200), nullable=False)
    votes = db.Column(db.Integer, nullable=False, default=0)
    eliminated_in_round = db.Column(db.Integer, nullable=True)
    tie_breaker_position = db.Column(db.Integer, nullable=True)

    option = db.relationship("PollOption", lazy=True)
