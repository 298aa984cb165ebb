class FeedCandidatesError(Exception):
    """Base class for errors raised by feed_candidates."""


class ConfigError(FeedCandidatesError):
    """Raised when the feed configuration or checkpoint is missing or malformed."""


class FetchError(FeedCandidatesError):
    """Raised when an RSS/Atom feed cannot be fetched or parsed."""


class FetchTimeout(FetchError):
    """Raised when a feed fetch exceeds its time budget."""


class DateUnresolvable(FeedCandidatesError):
    """Raised when a timestamp cannot be parsed into a calendar date/time."""
