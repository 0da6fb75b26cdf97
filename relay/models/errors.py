from enum import Enum


class FailureKind(str, Enum):
    INVALID_URL = "invalid_url"
    FETCH = "fetch"
    RELOCATION = "relocation"
    DELIVERY = "delivery"


class SubmissionError(Exception):
    """
    A failure the submitter is told about.

    ``reason`` is the generic text that ends up in the email; the underlying
    exception, if any, is kept as ``__cause__`` for the logs.
    """

    kind: FailureKind = FailureKind.FETCH
    default_reason = "Submission failed."

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class FetchError(SubmissionError):
    kind = FailureKind.FETCH
    default_reason = "Invalid URL or Zip file."


class InvalidUrlError(FetchError):
    kind = FailureKind.INVALID_URL
    default_reason = "Invalid GitHub repository URL. It must be a link to a zip file."


class RelocationError(SubmissionError):
    kind = FailureKind.RELOCATION
    default_reason = "Could not upload zip file. Try again!"


class DeliveryError(SubmissionError):
    kind = FailureKind.DELIVERY
    default_reason = "Could not send notification email."


class MalformedEventError(ValueError):
    """The triggering payload could not be turned into a SubmissionEvent."""
