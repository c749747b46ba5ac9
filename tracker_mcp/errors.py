"""Error taxonomy for the tracker.

Every failure surfaced to a caller is a ``TrackerError`` carrying a ``kind``
and, where one is known, the offending entity id. Tools turn these into
structured error payloads with ``to_dict()``.
"""

from __future__ import annotations

from typing import Any


class TrackerError(Exception):
    """Base class for all tracker failures."""

    kind = "tracker_error"
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        entity_type: str | None = None,
        entity_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.entity_type = entity_type
        self.entity_id = entity_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "retryable": self.retryable,
        }


class NotFoundError(TrackerError):
    """A referenced entity id does not exist."""

    kind = "not_found"

    def __init__(self, entity_type: str, entity_id: int) -> None:
        super().__init__(
            f"{entity_type.capitalize()} {entity_id} not found",
            entity_type=entity_type,
            entity_id=entity_id,
        )


class ValidationFailure(TrackerError):
    """The request is well-formed but meaningless (e.g. nothing to update)."""

    kind = "validation_failure"


class ConcurrencyTimeout(TrackerError):
    """The write lock was not acquired within the configured bound."""

    kind = "concurrency_timeout"
    retryable = True


class StoreUnavailable(TrackerError):
    """The durable store cannot be used. Callers should stop issuing writes."""

    kind = "store_unavailable"
