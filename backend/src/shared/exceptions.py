"""
Error taxonomy for the workforce platform.

Every domain error carries the HTTP status code the API layer responds with.
All of them are recoverable: the caller either fixes the input or retries.
"""


class MarketplaceError(Exception):
    """Base exception for all platform errors."""

    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {'error': self.__class__.__name__, 'message': self.message}
        if self.details:
            body['details'] = self.details
        return body


class ValidationError(MarketplaceError):
    """
    Raised for malformed input.

    Examples:
    - Missing meeting link for an online interview
    - Non-positive payment amount
    - Placeholder bank details
    """

    status_code = 400


class Forbidden(MarketplaceError):
    """Raised when the caller lacks the role or ownership for an action."""

    status_code = 403


class NotFound(MarketplaceError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class IllegalTransition(MarketplaceError):
    """
    Raised when a status guard rejects a transition.

    Nothing is written when this is raised.
    """

    status_code = 409


class AlreadyReviewed(IllegalTransition):
    """Raised when a terminal submission decision would be flipped."""


class AlreadyRated(IllegalTransition):
    """Raised when an approved submission is rated a second time."""


class ConflictError(MarketplaceError):
    """
    Raised when a conditional write loses a race with a concurrent writer.

    Should be retried after re-reading the record.
    """

    status_code = 409


class DependencyUnavailable(MarketplaceError):
    """
    Raised when DynamoDB, S3 or SQS cannot be reached.

    No partial writes happen, so the operation is safe to retry.
    """

    status_code = 503
