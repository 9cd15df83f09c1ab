"""Exceptions raised by the alert system.

The HTTP layer maps these to status codes; the dispatcher never lets a single
alert's failure escape the cycle.
"""


class AlertError(Exception):
    """Base class for alert system errors."""

    status_code = 500


class InvalidRequestError(AlertError):
    """A required field is missing or malformed in an inbound request."""

    status_code = 400


class InvalidCriteriaError(InvalidRequestError):
    """Alert filters could not be parsed into AlertCriteria."""


class NotFoundError(AlertError):
    """A referenced alert or token does not exist."""

    status_code = 404


class TournamentNotFoundError(NotFoundError):
    """The tournament referenced by an instant trigger does not exist."""

    def __init__(self, tournament_id: str):
        super().__init__(f"Tournament not found: {tournament_id}")
        self.tournament_id = tournament_id


class AlertLimitError(AlertError):
    """The email address already holds the maximum number of active alerts."""

    status_code = 429
