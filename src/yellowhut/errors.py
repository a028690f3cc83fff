from __future__ import annotations


class ShopError(Exception):
    pass


class NotFound(ShopError):
    pass


class AlreadyExists(ShopError):
    pass


class StoreUnavailable(ShopError):
    pass


class InvalidTransition(ShopError):
    pass


class ValidationFailed(ShopError):
    """Input rejected before any store call.

    ``errors`` maps field names to messages so forms can show them inline.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))
