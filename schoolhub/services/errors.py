# schoolhub/services/errors.py


class NotFoundError(LookupError):
    """A requested row does not exist (or is archived where that matters)."""

    def __init__(self, what: str, key=None):
        self.what = what
        self.key = key
        message = f"{what} not found" if key is None else f"{what} {key} not found"
        super().__init__(message)
