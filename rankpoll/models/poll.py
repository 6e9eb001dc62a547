from rankpoll.extensions import db
from rankpoll.models.timestamps import utcnow

POLL_STATUS_DRAFT = "draft"
POLL_STATUS_PUBLISHED = "published"
POLL_STATUS_CLOSED = "closed"


class Poll(db.Model):
    __tablename__ = "polls"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    # "draft", "published", "closed"
    status = db.Column(db.String(20), nullable=False, default=POLL_STATUS_DRAFT)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    allow_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    end_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    options = db.relationship(
        "PollOption",
        backref="poll",
        lazy=True,
        order_by="PollOption.position",
        cascade="all, delete-orphan",
    )
    ballots = db.relationship(
        "Ballot", backref="poll", lazy=True, cascade="all, delete-orphan"
    )
    result = db.relationship(
        "PollResult",
        backref="poll",
        uselist=False,
        lazy=True,
        cascade="all, delete-orphan",
    )

    @property
    def is_closed(self):
        return self.status == POLL_STATUS_CLOSED
