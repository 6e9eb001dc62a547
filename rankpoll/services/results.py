"""Poll result persistence.

Loads the ballot snapshot for a poll, runs the instant-runoff count and
stores the outcome as one ``PollResult`` row plus one ``PollResultValue``
row per option. Every function works inside the caller's session and never
commits; a failed write rolls the whole session back so a half-written
result is never visible.
"""
from collections import namedtuple
from enum import Enum

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from rankpoll.errors import ConstraintViolation, InvalidSnapshot, PollNotFound
from rankpoll.extensions import db
from rankpoll.models import Ballot, Poll, PollResult, PollResultValue
from rankpoll.models.poll import POLL_STATUS_CLOSED
from rankpoll.models.timestamps import utcnow
from rankpoll.services.voting import tally_instant_runoff


class ResultStatus(Enum):
    CACHED = "cached"
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


ResultOutcome = namedtuple("ResultOutcome", ["status", "result"])


def load_poll_snapshot(poll_id, session=None):
    session = session or db.session
    poll = session.get(
        Poll,
        poll_id,
        options=[
            selectinload(Poll.options),
            selectinload(Poll.ballots).selectinload(Ballot.rankings),
        ],
        populate_existing=True,
    )
    if poll is None:
        raise PollNotFound(poll_id)

    option_ids = [option.id for option in poll.options]
    if len(set(option_ids)) != len(option_ids):
        raise InvalidSnapshot("Duplicate options in poll", {"poll_id": poll_id})
    if any(option.poll_id != poll.id for option in poll.options):
        raise InvalidSnapshot("Option belongs to another poll", {"poll_id": poll_id})
    if any(ballot.poll_id != poll.id for ballot in poll.ballots):
        raise InvalidSnapshot("Ballot belongs to another poll", {"poll_id": poll_id})

    return poll


def tally_poll(poll):
    return tally_instant_runoff(
        poll.options, [ballot.rankings for ballot in poll.ballots]
    )


def _find_result(poll_id, session):
    return session.query(PollResult).filter_by(poll_id=poll_id).one_or_none()


def _result_values(result, trace):
    return [
        PollResultValue(
            poll_result_id=result.id,
            option_id=item["candidate_id"],
            option_text=item["text"],
            round_number=item["round_number"],
            votes=item["votes"],
            eliminated_in_round=item["eliminated_in_round"],
            tie_breaker_position=item["position"],
        )
        for item in trace["per_candidate"]
    ]


def _write_result(poll, trace, session, result=None):
    poll_id = poll.id
    replacing = result is not None
    try:
        if result is None:
            result = PollResult(poll_id=poll_id)
            session.add(result)
        result.total_ballots = trace["total_ballots"]
        result.total_rounds = trace["total_rounds"]
        result.winner_option_id = trace["winner_id"]
        result.is_draw = trace["is_draw"]
        result.tie_break_applied = trace["tie_break_applied"]
        result.completed_at = utcnow()
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        raise ConstraintViolation(
            "A result for this poll was written concurrently", poll_id=poll_id
        ) from exc
    except SQLAlchemyError:
        session.rollback()
        raise

    try:
        if replacing:
            session.query(PollResultValue).filter_by(poll_result_id=result.id).delete(
                synchronize_session="fetch"
            )
        session.add_all(_result_values(result, trace))
        session.flush()
    except SQLAlchemyError:
        session.rollback()
        raise

    session.expire(result, ["values"])
    return result


def resolve_poll_result(poll_id, session=None):
    """Return the stored result for a poll, computing it on first use.

    An existing result is returned untouched even if ballots changed since it
    was written. When another transaction stores the first result between
    our lookup and our insert, the session is rolled back and the winner's
    row is returned with ``ALREADY_EXISTS``.
    """
    session = session or db.session

    existing = _find_result(poll_id, session)
    if existing is not None:
        return ResultOutcome(ResultStatus.CACHED, existing)

    poll = load_poll_snapshot(poll_id, session)
    trace = tally_poll(poll)

    try:
        result = _write_result(poll, trace, session)
    except ConstraintViolation:
        existing = _find_result(poll_id, session)
        if existing is None:
            raise
        current_app.logger.warning(
            "Result for poll %s was computed concurrently; using stored row %s",
            poll_id,
            existing.id,
        )
        return ResultOutcome(ResultStatus.ALREADY_EXISTS, existing)

    current_app.logger.info(
        "Computed result for poll %s: winner=%s rounds=%s ballots=%s",
        poll_id,
        result.winner_option_id,
        result.total_rounds,
        result.total_ballots,
    )
    return ResultOutcome(ResultStatus.CREATED, result)


def get_or_compute_poll_result(poll_id, session=None):
    return resolve_poll_result(poll_id, session).result


def recompute_poll_result(poll_id, session=None):
    """Re-run the count and replace whatever result is stored for the poll."""
    session = session or db.session

    poll = load_poll_snapshot(poll_id, session)
    trace = tally_poll(poll)
    result = _write_result(poll, trace, session, _find_result(poll_id, session))

    current_app.logger.info(
        "Recomputed result for poll %s: winner=%s rounds=%s ballots=%s",
        poll_id,
        result.winner_option_id,
        result.total_rounds,
        result.total_ballots,
    )
    return result


def finalize_poll_if_expired(poll, now=None, session=None):
    """Close an expired poll and freeze its result.

    Polls that are already closed, have no end time, or have not reached it
    are returned unchanged.
    """
    if poll is None:
        return None
    if poll.is_closed or poll.end_at is None:
        return poll

    now = now or utcnow()
    if poll.end_at > now:
        return poll

    session = session or db.session
    poll.status = POLL_STATUS_CLOSED
    poll.is_active = False
    try:
        session.flush()
    except SQLAlchemyError:
        session.rollback()
        raise

    recompute_poll_result(poll.id, session)
    current_app.logger.info("Poll %s expired at %s and was closed", poll.id, poll.end_at)
    return poll


def finalize_expired_polls(now=None, session=None):
    session = session or db.session
    now = now or utcnow()

    expired = (
        session.query(Poll)
        .filter(Poll.status != POLL_STATUS_CLOSED)
        .filter(Poll.end_at.isnot(None))
        .filter(Poll.end_at <= now)
        .order_by(Poll.id)
        .all()
    )
    return [finalize_poll_if_expired(poll, now=now, session=session) for poll in expired]


def serialize_poll_result(result):
    return {
        "id": result.id,
        "poll_id": result.poll_id,
        "total_ballots": result.total_ballots,
        "total_rounds": result.total_rounds,
        "winner_option_id": result.winner_option_id,
        "is_draw": result.is_draw,
        "tie_break_applied": result.tie_break_applied,
        "completed_at": result.completed_at.isoformat() if result.completed_at else None,
        "values": [
            {
                "option_id": value.option_id,
                "option_text": value.option_text,
                "round_number": value.round_number,
                "votes": value.votes,
                "eliminated_in_round": value.eliminated_in_round,
                "tie_breaker_position": value.tie_breaker_position,
            }
            for value in result.values
        ],
    }
