from rankpoll.models.ballot import Ballot
from rankpoll.models.ballot_ranking import BallotRanking
from rankpoll.models.poll import Poll
from rankpoll.models.poll_option import PollOption
from rankpoll.models.poll_result import PollResult, PollResultValue

__all__ = [
    "Poll",
    "PollOption",
    "Ballot",
    "BallotRanking",
    "PollResult",
    "PollResultValue",
]
