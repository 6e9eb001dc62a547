from flask import current_app

from rankpoll.errors import PollAlreadyClosed, PollNotFound
from rankpoll.extensions import db
from rankpoll.models import Poll
from rankpoll.models.poll import POLL_STATUS_CLOSED
from rankpoll.models.timestamps import utcnow
from rankpoll.services.results import recompute_poll_result


def get_poll(poll_id, session=None):
    session = session or db.session
    poll = session.get(Poll, poll_id)
    if poll is None:
        raise PollNotFound(poll_id)
    return poll


def close_poll(poll_id, session=None):
    """Close a poll by hand and freeze its result from the current ballots."""
    session = session or db.session
    poll = get_poll(poll_id, session)
    if poll.is_closed:
        raise PollAlreadyClosed("Poll already closed", {"poll_id": poll_id})

    poll.status = POLL_STATUS_CLOSED
    poll.is_active = False
    if not poll.end_at:
        poll.end_at = utcnow()
    session.flush()

    recompute_poll_result(poll.id, session)
    current_app.logger.info("Poll %s closed by administrator", poll.id)
    return poll


def toggle_poll_active(poll_id, session=None):
    session = session or db.session
    poll = get_poll(poll_id, session)

    poll.is_active = not poll.is_active
    if not poll.is_active and not poll.end_at:
        poll.end_at = utcnow()
    session.flush()

    current_app.logger.info(
        "Poll %s %s", poll.id, "enabled" if poll.is_active else "disabled"
    )
    return poll
