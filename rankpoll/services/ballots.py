from flask import current_app

from rankpoll.errors import BallotRejected
from rankpoll.extensions import db
from rankpoll.models import Ballot, BallotRanking
from rankpoll.models.poll import POLL_STATUS_PUBLISHED
from rankpoll.models.timestamps import utcnow
from rankpoll.services.polls import get_poll


def _parse_rankings(rankings):
    if not isinstance(rankings, (list, tuple)) or not rankings:
        raise BallotRejected("rankings must be a non-empty list")

    parsed = []
    for ranking in rankings:
        if (
            not isinstance(ranking, dict)
            or ranking.get("option_id") is None
            or ranking.get("rank") is None
        ):
            raise BallotRejected("Each ranking must be a mapping { option_id, rank }")
        try:
            parsed.append((int(ranking["option_id"]), int(ranking["rank"])))
        except (TypeError, ValueError):
            raise BallotRejected(
                "option_id and rank must be integers", {"ranking": ranking}
            )
    return parsed


def cast_ballot(poll_id, rankings, user_id=None, now=None, session=None):
    """Record one ranked ballot for a poll.

    ``rankings`` is a list of ``{"option_id": ..., "rank": ...}`` mappings.
    Which options a ballot ranks is not checked here; the count ignores
    references to options outside the poll.
    """
    session = session or db.session
    parsed = _parse_rankings(rankings)
    poll = get_poll(poll_id, session)
    now = now or utcnow()

    if not poll.is_active:
        raise BallotRejected(
            "This poll has been disabled by an administrator", {"poll_id": poll_id}
        )
    if poll.end_at and now > poll.end_at:
        raise BallotRejected("Poll has ended", {"poll_id": poll_id})
    if poll.status != POLL_STATUS_PUBLISHED:
        raise BallotRejected("Cannot vote on unpublished polls", {"poll_id": poll_id})

    if not poll.allow_anonymous:
        if user_id is None:
            raise BallotRejected("Please log in to vote on this poll", {"poll_id": poll_id})
        already_voted = (
            session.query(Ballot).filter_by(poll_id=poll.id, user_id=user_id).first()
        )
        if already_voted:
            raise BallotRejected(
                "You have already voted on this poll",
                {"poll_id": poll_id, "user_id": user_id},
            )

    ballot = Ballot(poll_id=poll.id, user_id=user_id)
    ballot.rankings = [
        BallotRanking(option_id=option_id, rank=rank) for option_id, rank in parsed
    ]
    session.add(ballot)
    session.flush()

    current_app.logger.info("Ballot %s recorded for poll %s", ballot.id, poll.id)
    return ballot
