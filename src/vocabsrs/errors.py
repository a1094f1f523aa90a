"""Exceptions raised by the review engine."""


class VocabSrsError(Exception):
    """Base class for review engine errors."""


class InvalidConfiguration(VocabSrsError, ValueError):
    """The interval ladder is unusable (fewer than three distinct positive values)."""


class InvalidProgress(VocabSrsError, ValueError):
    """A progress row violates the ladder or counter invariants."""


class MissingItem(VocabSrsError, LookupError):
    """A progress row, attempt or session entry refers to a deleted item."""

    def __init__(self, item_id):
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class StorageFailure(VocabSrsError):
    """The persistence collaborator failed; no partial update is visible."""
