class DiscountError(Exception):
    """Base class for failures the discount core reports to its caller."""


class ValidationError(DiscountError):
    """Input was rejected before anything was persisted."""


class NotFoundError(DiscountError):
    """The referenced discount does not exist."""


class UsageLimitError(DiscountError):
    """A capped discount has no usage left."""


class StoreError(DiscountError):
    """The backing store failed; the underlying exception is chained."""
