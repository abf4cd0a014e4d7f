"""
Categorized game errors.

Every operation validates before it mutates, so raising one of these never
leaves a hero half-updated. The HTTP layer turns them into responses
(see ``game.views.GameAPIView``).
"""
from typing import Any, Dict, Optional


class GameError(Exception):
    """Base class: a recoverable, player-facing rejection."""

    code = "game_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self):
        return {"error": self.message, "code": self.code, "details": self.details}


class NotFound(GameError):
    code = "not_found"


class InvalidArgument(GameError):
    code = "invalid_argument"


class InsufficientResource(GameError):
    """Not enough of ``resource`` (gold, honor, or a material kind)."""

    code = "insufficient_resource"

    def __init__(self, resource: str, required: int, available: int, message: Optional[str] = None):
        super().__init__(
            message or f"Not enough {resource}: need {required}, have {available}.",
            {"resource": resource, "required": required, "available": available},
        )
        self.resource = resource
        self.required = required
        self.available = available


class PreconditionFailed(GameError):
    code = "precondition_failed"
