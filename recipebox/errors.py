"""Error taxonomy shared by the service layer and the HTTP handlers.

Every error carries the HTTP status it maps to and renders as
``{"error": ..., "details": [...]}``; ``details`` is only present for
validation failures.
"""
from typing import Any, Dict, List, Optional


class RecipeBoxError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(RecipeBoxError):
    status_code = 400
    message = "Invalid request data"


class InvalidQuery(ValidationFailed):
    message = "Invalid query parameters"


class Conflict(RecipeBoxError):
    # unique constraint violations are reported as bad requests
    status_code = 400
    message = "Resource already exists"


class NotFound(RecipeBoxError):
    status_code = 404
    message = "Not found"


class Unauthorized(RecipeBoxError):
    status_code = 401
    message = "Authentication token required"


class Forbidden(RecipeBoxError):
    status_code = 403
    message = "Invalid or expired token"


def format_validation_errors(errors) -> List[Dict[str, Any]]:
    """Turn pydantic error dicts into ``{field, message}`` entries.

    The request location (``body``, ``query``, ``path``) is dropped so the
    field reads as a dotted path into the payload, e.g.
    ``ingredients.2.quantity``.
    """
    details = []
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path"):
            origin = loc.pop(0)
        else:
            origin = None
        field = ".".join(str(part) for part in loc) or origin or ""
        message = err.get("msg", "Invalid value")
        ctx = err.get("ctx") or {}
        if err.get("type") == "value_error":
            message = str(ctx["error"]) if "error" in ctx else message.replace("Value error, ", "", 1)
        details.append({"field": field, "message": message})
    return details
