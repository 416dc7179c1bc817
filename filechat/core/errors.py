"""
Application errors for clean API error handling.

Services raise these; the API handlers turn them into HTTP responses using
status_code and the short user-facing message. Raw exception text from
storage or the answering function never reaches the client.
"""


class FileChatError(Exception):
    """Base for all client-visible failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(FileChatError):
    """Malformed or missing upload, or an empty question."""

    status_code = 400


class NoFileUploadedError(FileChatError):
    """A question arrived before any file was ingested."""

    status_code = 400

    def __init__(self, message: str = "No file has been uploaded yet. Upload a file first.") -> None:
        super().__init__(message)


class StorageError(FileChatError):
    """Writing the uploaded file to disk failed."""

    status_code = 500


class UpstreamAnswerError(FileChatError):
    """The answering function raised or returned something unusable."""

    status_code = 502


class UpstreamTimeoutError(UpstreamAnswerError):
    """The answering function did not finish within the configured timeout."""

    status_code = 504
