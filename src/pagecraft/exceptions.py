"""Custom exceptions for pagecraft."""


class PagecraftError(Exception):
    """Base exception for pagecraft operations."""


class UnknownMaterialError(PagecraftError, KeyError):
    """Material type is not registered."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class InvalidMoveError(PagecraftError, ValueError):
    """Move would put a node inside itself or relocate the root."""


class IrreversibleActionError(PagecraftError):
    """History action cannot be inverted."""


class TreeIntegrityError(PagecraftError):
    """Node tree violates id uniqueness or parent back-references."""
