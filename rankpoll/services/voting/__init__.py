from rankpoll.services.voting.instant_runoff import (
    Candidate,
    Ranking,
    build_preference_lists,
    tally_instant_runoff,
)

__all__ = [
    "Candidate",
    "Ranking",
    "build_preference_lists",
    "tally_instant_runoff",
]
