"""
Exceptions raised while talking to the Secret Service.

Every message names the step that failed, so the CLI can print it as-is.
"""


class SecretCliError(Exception):
    """Base class for all secretcli errors."""
    pass


class BusConnectionError(SecretCliError):
    """Raised when the session bus cannot be reached."""
    pass


class SessionError(SecretCliError):
    """Raised when OpenSession fails."""
    pass


class SearchError(SecretCliError):
    """Raised when SearchItems fails."""
    pass


class ResponseFormatError(SecretCliError):
    """Raised when a reply does not have the shape the protocol promises."""
    pass


class StoreError(SecretCliError):
    pass


class RetrieveError(SecretCliError):
    pass


class ItemDetailError(SecretCliError):
    """Raised when an item's properties cannot be read. Listing skips these."""
    pass


class DeleteError(SecretCliError):
    pass


class SecretNotFoundError(SecretCliError):

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"no secret found with key: {key}")


class ValueReadError(SecretCliError):
    """Raised when the secret value cannot be read from stdin."""
    pass
