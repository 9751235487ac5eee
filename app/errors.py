class QuoteLookupError(Exception):
    """Base class for classified quote API failures."""

    kind = "TRANSIENT_ERROR"
    fatal = False


class QuoteAccessDeniedError(QuoteLookupError):
    kind = "ACCESS_DENIED"
    fatal = True


class QuoteRateLimitedError(QuoteLookupError):
    kind = "RATE_LIMITED"
    fatal = True


class QuoteNotFoundError(QuoteLookupError):
    kind = "NOT_FOUND"


class QuoteTransientError(QuoteLookupError):
    kind = "TRANSIENT_ERROR"


class NoSymbolsError(ValueError):
    pass
