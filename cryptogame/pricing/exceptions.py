"""Upstream price provider failures.

The resolver turns every one of them into a step down its fallback chain.
Only the market listing pass-through lets them reach the API layer.
"""


class UpstreamUnavailable(Exception):
    """The provider could not produce a usable answer.

    Covers timeouts, connection failures and unexpected HTTP statuses.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class UpstreamRateLimited(UpstreamUnavailable):
    """HTTP 429 or 503: worth retrying after a pause."""


class UpstreamDataError(UpstreamUnavailable):
    """The provider answered, but with an empty or malformed payload."""
