"""
Defines custom exceptions so callers such as an HTTP layer can map failures
to responses.
"""


class TorrentClientError(Exception):
    """Base exception for all application-specific errors."""


class BadRequest(TorrentClientError):
    """
    Raised when a caller supplies a torrent link that cannot be parsed or
    resolved. Not retryable without a different link.
    """

    status_code = 400

    def __init__(self, message: str, link: str):
        super().__init__(message)
        self.message = message
        self.link = link
