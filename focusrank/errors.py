"""Exception types shared across FocusRank."""


class FocusRankError(Exception):
    """Base class for every error FocusRank raises on purpose."""


class InvalidConfiguration(FocusRankError, ValueError):
    """A configuration value breaks a duration or interval rule."""


class RecordNotFound(FocusRankError, LookupError):
    """A session, task or settings row does not exist for this user."""
