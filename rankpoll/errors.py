"""
Exceptions raised by the rankpoll services.

Everything inherits from RankPollError so callers can catch the whole family.
"""


class RankPollError(Exception):
    """
    Base exception for rankpoll.

    Attributes:
        message: Human-readable error message
        details: Extra context for logs and debugging
    """

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class PollNotFound(RankPollError):
    """The requested poll does not exist."""

    def __init__(self, poll_id):
        super().__init__("Poll not found", details={"poll_id": poll_id})
        self.poll_id = poll_id


class ConstraintViolation(RankPollError):
    """
    A write collided with a uniqueness constraint.

    Raised when another transaction created the result row for the same
    poll first. Re-read instead of retrying the write.
    """

    def __init__(self, message, poll_id=None):
        super().__init__(message, details={"poll_id": poll_id} if poll_id else None)
        self.poll_id = poll_id


class InvalidSnapshot(RankPollError):
    """Loaded options or ballots are inconsistent with their poll."""


class BallotRejected(RankPollError):
    """A ballot could not be accepted for the poll."""


class PollAlreadyClosed(RankPollError):
    """The poll has already been closed."""
