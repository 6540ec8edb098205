class CollaboratorError(Exception):
    """An external roster or calendar service could not be used."""


class RosterFetchError(CollaboratorError):
    pass


class OverrideSubmissionError(CollaboratorError):
    pass


class CalendarFetchError(CollaboratorError):
    def __init__(self, email: str, status_code: int) -> None:
        super().__init__(f"Calendar request for {email} failed with status {status_code}")
        self.email = email
        self.status_code = status_code


class CalendarUnauthorized(CollaboratorError):
    """The calendar access token is missing, expired or revoked."""
