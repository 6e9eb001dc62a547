from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from rankpoll.errors import ConstraintViolation, PollNotFound
from rankpoll.models import Poll, PollResult, PollResultValue
from rankpoll.models.poll import POLL_STATUS_CLOSED
from rankpoll.services import results
from rankpoll.services.results import (
    ResultStatus,
    finalize_expired_polls,
    finalize_poll_if_expired,
    get_or_compute_poll_result,
    recompute_poll_result,
    resolve_poll_result,
    serialize_poll_result,
)


def test_first_call_computes_and_stores_result(db_session, make_poll, add_ballot):
    poll, (apple, banana, cherry) = make_poll(["Apple", "Banana", "Cherry"])
    add_ballot(poll, [apple, banana])
    add_ballot(poll, [apple])
    add_ballot(poll, [banana])

    outcome = resolve_poll_result(poll.id)
    db_session.commit()

    assert outcome.status is ResultStatus.CREATED
    result = outcome.result
    assert result.poll_id == poll.id
    assert result.total_ballots == 3
    assert result.total_rounds == 1
    assert result.winner_option_id == apple.id
    assert result.is_draw is False
    assert len(result.values) == 3
    assert {value.option_id for value in result.values} == {apple.id, banana.id, cherry.id}


def test_cached_result_ignores_later_ballots(db_session, make_poll, add_ballot):
    poll, (apple, banana) = make_poll(["Apple", "Banana"])
    add_ballot(poll, [apple])

    first = get_or_compute_poll_result(poll.id)
    db_session.commit()
    add_ballot(poll, [banana])
    add_ballot(poll, [banana])

    outcome = resolve_poll_result(poll.id)

    assert outcome.status is ResultStatus.CACHED
    assert outcome.result.id == first.id
    assert outcome.result.total_ballots == 1
    assert outcome.result.winner_option_id == apple.id
    assert PollResult.query.filter_by(poll_id=poll.id).count() == 1


def test_recompute_replaces_values(db_session, make_poll, add_ballot):
    poll, (apple, banana, cherry) = make_poll(["Apple", "Banana", "Cherry"])
    add_ballot(poll, [apple])
    first = get_or_compute_poll_result(poll.id)
    db_session.commit()

    add_ballot(poll, [banana])
    add_ballot(poll, [banana, apple])
    result = recompute_poll_result(poll.id)
    db_session.commit()

    assert result.id == first.id
    assert result.total_ballots == 3
    assert result.winner_option_id == banana.id
    stored = PollResultValue.query.filter_by(poll_result_id=result.id).all()
    assert len(stored) == 3
    assert {(value.option_id, value.votes) for value in stored} == {
        (apple.id, 1),
        (banana.id, 2),
        (cherry.id, 0),
    }
    assert PollResultValue.query.count() == 3


def test_values_are_ordered_by_round_then_votes(db_session, make_poll, add_ballot):
    poll, (apple, banana, cherry) = make_poll(["Apple", "Banana", "Cherry"])
    for _ in range(3):
        add_ballot(poll, [cherry])
    add_ballot(poll, [apple])
    add_ballot(poll, [apple])
    add_ballot(poll, [banana, apple])

    result = get_or_compute_poll_result(poll.id)
    db_session.commit()
    db_session.expire_all()

    data = serialize_poll_result(db_session.get(PollResult, result.id))
    assert [(v["round_number"], v["option_text"]) for v in data["values"]] == [
        (1, "Banana"),
        (2, "Apple"),
        (2, "Cherry"),
    ]
    assert data["winner_option_id"] == apple.id
    assert data["values"][0]["eliminated_in_round"] == 1
    assert data["values"][0]["tie_breaker_position"] == 2


def test_option_text_is_a_snapshot(db_session, make_poll, add_ballot):
    poll, (apple, banana) = make_poll(["Apple", "Banana"])
    add_ballot(poll, [apple])
    result = get_or_compute_poll_result(poll.id)
    db_session.commit()

    apple.text = "Green Apple"
    db_session.commit()
    db_session.expire_all()

    stored = PollResultValue.query.filter_by(
        poll_result_id=result.id, option_id=apple.id
    ).one()
    assert stored.option_text == "Apple"


def test_poll_without_options_has_no_winner(db_session, make_poll):
    poll, _ = make_poll([])

    result = get_or_compute_poll_result(poll.id)

    assert result.total_rounds == 0
    assert result.winner_option_id is None
    assert result.values == []


def test_missing_poll_raises_before_writing(db_session):
    with pytest.raises(PollNotFound):
        get_or_compute_poll_result(4242)
    with pytest.raises(PollNotFound):
        recompute_poll_result(4242)

    assert PollResult.query.count() == 0


def test_failed_value_insert_rolls_back_everything(
    db_session, make_poll, add_ballot, monkeypatch
):
    poll, (apple, banana) = make_poll(["Apple", "Banana"])
    add_ballot(poll, [apple])

    def broken_values(result, trace):
        return [
            PollResultValue(
                poll_result_id=result.id,
                option_id=apple.id,
                option_text=None,
                round_number=1,
            )
        ]

    monkeypatch.setattr(results, "_result_values", broken_values)

    with pytest.raises(IntegrityError):
        get_or_compute_poll_result(poll.id)

    assert PollResult.query.count() == 0
    assert PollResultValue.query.count() == 0


def test_failed_recompute_keeps_previous_result(
    db_session, make_poll, add_ballot, monkeypatch
):
    poll, (apple, banana) = make_poll(["Apple", "Banana"])
    add_ballot(poll, [apple])
    result_id = get_or_compute_poll_result(poll.id).id
    db_session.commit()
    add_ballot(poll, [banana])
    add_ballot(poll, [banana])

    monkeypatch.setattr(
        results,
        "_result_values",
        lambda result, trace: [
            PollResultValue(
                poll_result_id=result.id, option_id=apple.id, option_text=None, round_number=1
            )
        ],
    )

    with pytest.raises(IntegrityError):
        recompute_poll_result(poll.id)

    stored = db_session.get(PollResult, result_id)
    assert stored.total_ballots == 1
    assert stored.winner_option_id == apple.id
    assert PollResultValue.query.filter_by(poll_result_id=result_id).count() == 2


def test_concurrent_first_computation_returns_existing_row(
    db_session, make_poll, add_ballot, monkeypatch
):
    poll, (apple, banana) = make_poll(["Apple", "Banana"])
    add_ballot(poll, [banana])
    winner_id = get_or_compute_poll_result(poll.id).id
    db_session.commit()

    real_find = results._find_result
    calls = []

    def stale_first_lookup(poll_id, session):
        calls.append(poll_id)
        if len(calls) == 1:
            return None
        return real_find(poll_id, session)

    monkeypatch.setattr(results, "_find_result", stale_first_lookup)

    outcome = resolve_poll_result(poll.id)

    assert outcome.status is ResultStatus.ALREADY_EXISTS
    assert outcome.result.id == winner_id
    assert PollResult.query.count() == 1


def test_recompute_race_surfaces_constraint_violation(
    db_session, make_poll, add_ballot, monkeypatch
):
    poll, (apple,) = make_poll(["Apple"])
    add_ballot(poll, [apple])
    get_or_compute_poll_result(poll.id)
    db_session.commit()

    monkeypatch.setattr(results, "_find_result", lambda poll_id, session: None)

    with pytest.raises(ConstraintViolation):
        recompute_poll_result(poll.id)


def test_finalize_closes_expired_poll_and_recomputes(db_session, make_poll, add_ballot):
    now = datetime(2026, 5, 1, 12, 0, 0)
    poll, (apple, banana) = make_poll(["Apple", "Banana"], end_at=now - timedelta(minutes=5))
    add_ballot(poll, [apple])
    get_or_compute_poll_result(poll.id)
    db_session.commit()
    add_ballot(poll, [banana])
    add_ballot(poll, [banana])

    finalize_poll_if_expired(poll, now=now)
    db_session.commit()

    assert poll.status == POLL_STATUS_CLOSED
    assert poll.is_active is False
    result = PollResult.query.filter_by(poll_id=poll.id).one()
    assert result.total_ballots == 3
    assert result.winner_option_id == banana.id


@pytest.mark.parametrize(
    "status, end_offset",
    [
        (POLL_STATUS_CLOSED, timedelta(minutes=-5)),
        ("published", None),
        ("published", timedelta(minutes=5)),
    ],
)
def test_finalize_leaves_other_polls_untouched(db_session, make_poll, status, end_offset):
    now = datetime(2026, 5, 1, 12, 0, 0)
    end_at = now + end_offset if end_offset is not None else None
    poll, _ = make_poll(["Apple", "Banana"], status=status, end_at=end_at)

    returned = finalize_poll_if_expired(poll, now=now)

    assert returned is poll
    assert poll.status == status
    assert PollResult.query.count() == 0


def test_finalize_expired_polls_only_touches_expired(db_session, make_poll, add_ballot):
    now = datetime(2026, 5, 1, 12, 0, 0)
    expired, (apple, _) = make_poll(["Apple", "Banana"], end_at=now - timedelta(hours=1))
    running, _ = make_poll(["Apple", "Banana"], end_at=now + timedelta(hours=1))
    add_ballot(expired, [apple])

    finalized = finalize_expired_polls(now=now)
    db_session.commit()

    assert [poll.id for poll in finalized] == [expired.id]
    assert db_session.get(Poll, running.id).status == "published"
    assert PollResult.query.filter_by(poll_id=expired.id).one().winner_option_id == apple.id
    assert PollResult.query.filter_by(poll_id=running.id).count() == 0
