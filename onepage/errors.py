"""Pipeline error taxonomy.

Every failure the content pipeline can raise maps to one of these classes.
Each carries the HTTP status the API layer answers with and a message that
is safe to show to the caller. Internal detail goes to the log, never into
``message``.
"""


class PipelineError(Exception):
    """Base class. ``status_code`` and ``message`` drive the JSON response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.message}


class ValidationError(PipelineError):
    """Malformed or missing input. Raised before any external call."""

    status_code = 400
    message = "Invalid request"


class ModerationRejection(PipelineError):
    """Submitted content was judged unsafe. Never retried."""

    status_code = 422

    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"Content moderation: {reason}")


class ContentContractError(PipelineError):
    """Model output did not match the expected format, even after recovery."""

    status_code = 502
    message = "The AI response could not be processed. Please try again."


class UpstreamTransportError(PipelineError):
    """Network, timeout or rate-limit failure from an external collaborator."""

    status_code = 503
    message = "An upstream service is unavailable. Please try again."


class StateConflictError(PipelineError):
    """Publish-state conflict. Tolerated under webhook redelivery."""

    status_code = 409
    message = "State conflict"
    retryable = False


class SiteAlreadyPublished(StateConflictError):
    """The subdomain already has a Site row. Treated as success."""

    message = "Site already published"


class DraftNotFound(StateConflictError):
    """Draft missing at publish time. The provider should redeliver."""

    message = "Draft not found"
    retryable = True


class AuthorityError(PipelineError):
    """Failure reported by the remote credential authority.

    Status and message are passed through verbatim.
    """

    def __init__(self, status_code, message):
        self.status_code = status_code
        super().__init__(message)


class InternalError(PipelineError):
    status_code = 500


class SiteNotFound(PipelineError):
    status_code = 404
    message = "Site not found"


class RevisionLimitReached(PipelineError):
    """The site has used all of its free revisions."""

    status_code = 402
    message = "All free revisions have been used. A paid revision is required."

    def to_dict(self):
        return {"error": self.message, "requiresPayment": True, "message": self.message}
