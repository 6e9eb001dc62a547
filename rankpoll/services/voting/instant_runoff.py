from collections import namedtuple

Candidate = namedtuple("Candidate", ["id", "text", "position"])
Ranking = namedtuple("Ranking", ["option_id", "rank"])


def _position(candidate):
    return candidate.position or 0


def order_candidates(candidates):
    return sorted(candidates, key=lambda c: (_position(c), c.id))


def build_preference_lists(ballots, candidate_ids):
    """Reduce raw ballots to ordered preference lists.

    Each ballot is an iterable of rankings exposing ``option_id`` and
    ``rank``. Rankings that point outside ``candidate_ids`` or carry no rank
    are dropped. Equal ranks inside one ballot fall back to option id
    ascending. A candidate ranked twice only keeps its best rank. Ballots
    left with no preferences are discarded.
    """
    preference_lists = []
    for rankings in ballots:
        valid = [
            r for r in rankings if r.option_id in candidate_ids and r.rank is not None
        ]
        ordered = []
        for ranking in sorted(valid, key=lambda r: (r.rank, r.option_id)):
            if ranking.option_id not in ordered:
                ordered.append(ranking.option_id)
        if ordered:
            preference_lists.append(ordered)

    return preference_lists


def count_first_preferences(preference_lists, active):
    counts = {cid: 0 for cid in active}
    for preferences in preference_lists:
        for option_id in preferences:
            if option_id in counts:
                counts[option_id] += 1
                break
    return counts


def _empty_trace(total_ballots, total_rounds):
    return {
        "total_ballots": total_ballots,
        "total_rounds": total_rounds,
        "winner_id": None,
        "is_draw": False,
        "tie_break_applied": False,
        "per_candidate": [],
        "rounds": [],
        "round_logs": [],
    }


def tally_instant_runoff(candidates, ballots):
    """Run a single-winner instant-runoff count.

    ``candidates`` are objects with ``id``, ``text`` and ``position``;
    ``ballots`` is an iterable of ranking iterables (see
    :func:`build_preference_lists`). The function is pure: the same input
    always yields the same trace, and malformed rankings are filtered rather
    than reported.

    Tie-breaks use the declared ``position`` (then id). When every active
    candidate is tied the lowest position wins; otherwise, among candidates
    tied for last, the highest position is eliminated.
    """
    options = order_candidates(candidates)
    options_by_id = {option.id: option for option in options}
    preference_lists = build_preference_lists(ballots, set(options_by_id))

    if not options:
        return _empty_trace(len(preference_lists), 0)

    def name(cid):
        return options_by_id[cid].text

    def position(cid):
        return (_position(options_by_id[cid]), cid)

    if not preference_lists:
        trace = _empty_trace(0, 1)
        trace["per_candidate"] = [
            {
                "candidate_id": option.id,
                "text": option.text,
                "votes": 0,
                "round_number": 1,
                "eliminated_in_round": None,
                "position": _position(option),
            }
            for option in options
        ]
        trace["rounds"] = [
            {
                "round_number": 1,
                "counts": {option.id: 0 for option in options},
                "total": 0,
            }
        ]
        trace["round_logs"] = [["No ballot ranks any option; no winner can be determined."]]
        return trace

    active = [option.id for option in options]
    winner_id = None
    tie_break_applied = False
    elimination_rounds = {}
    last_votes = {}
    last_counts = {}
    rounds = []
    round_logs = []

    while len(active) > 1:
        counts = count_first_preferences(preference_lists, active)
        last_counts = counts
        round_number = len(rounds) + 1
        total = sum(counts.values())
        rounds.append({"round_number": round_number, "counts": dict(counts), "total": total})

        base_log = [
            "Round {}: first-preference counts {}".format(
                round_number,
                ", ".join(f"{name(cid)} = {counts[cid]}" for cid in active),
            ),
            f"Total votes counted this round: {total}.",
        ]

        majority = [cid for cid in active if counts[cid] * 2 > total]
        if majority:
            winner_id = majority[0]
            base_log.append(f"{name(winner_id)} has a majority (>50%) and is elected.")
            round_logs.append(base_log)
            break

        min_votes = min(counts.values())
        lowest = [cid for cid in active if counts[cid] == min_votes]

        if len(lowest) == len(active):
            tie_break_applied = True
            winner_id = min(lowest, key=position)
            for cid in lowest:
                last_votes[cid] = counts[cid]
                if cid != winner_id:
                    elimination_rounds[cid] = round_number
            base_log.append(
                f"All remaining options are tied at {min_votes}; "
                f"{name(winner_id)} has the lowest position and is elected."
            )
            round_logs.append(base_log)
            break

        if len(lowest) == 1:
            loser = lowest[0]
            base_log.append(
                f"No majority. {name(loser)} has the fewest votes ({min_votes}) "
                "and is eliminated."
            )
        else:
            tie_break_applied = True
            loser = max(lowest, key=position)
            base_log.append(
                "No majority. Tie for lowest between: {}. {} has the highest "
                "position and is eliminated.".format(
                    ", ".join(name(cid) for cid in lowest), name(loser)
                )
            )

        elimination_rounds[loser] = round_number
        last_votes[loser] = counts[loser]
        active.remove(loser)
        round_logs.append(base_log)

    if winner_id is None and len(active) == 1:
        (winner_id,) = active
        if not rounds:
            last_counts = {winner_id: len(preference_lists)}
            rounds.append(
                {
                    "round_number": 1,
                    "counts": dict(last_counts),
                    "total": len(preference_lists),
                }
            )
        round_logs.append([f"{name(winner_id)} is the only remaining option and is elected."])

    total_rounds = len(rounds)
    if winner_id is not None and winner_id not in last_votes:
        last_votes[winner_id] = last_counts.get(winner_id, 0)

    per_candidate = []
    for option in options:
        eliminated_in_round = (
            None if option.id == winner_id else elimination_rounds.get(option.id)
        )
        per_candidate.append(
            {
                "candidate_id": option.id,
                "text": option.text,
                "votes": last_votes.get(option.id, last_counts.get(option.id, 0)),
                "round_number": eliminated_in_round or total_rounds,
                "eliminated_in_round": eliminated_in_round,
                "position": _position(option),
            }
        )

    return {
        "total_ballots": len(preference_lists),
        "total_rounds": total_rounds,
        "winner_id": winner_id,
        "is_draw": False,
        "tie_break_applied": tie_break_applied,
        "per_candidate": per_candidate,
        "rounds": rounds,
        "round_logs": round_logs,
    }
