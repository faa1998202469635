"""Error taxonomy of the catalog API.

Business rules in ``crud`` and the request dependencies raise these; the
handlers registered in ``main`` turn them into ``{"success": false, ...}``
JSON bodies with the matching status code.
"""
from typing import Dict, List, Optional

from pydantic import ValidationError


class CatalogError(Exception):
    status_code = 400
    default_message = "Bad request"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationFailed(CatalogError):
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls([{"field": field, "message": message}])

    @classmethod
    def from_pydantic(cls, errors) -> "ValidationFailed":
        return cls(field_errors(errors))

    def to_body(self) -> dict:
        return {"success": False, "message": self.message, "errors": self.errors}


class Unauthenticated(CatalogError):
    status_code = 401
    default_message = "No token, authorization denied"


class InvalidToken(CatalogError):
    status_code = 401
    default_message = "Token is not valid"


class InvalidCredentials(CatalogError):
    default_message = "Invalid credentials"


class Forbidden(CatalogError):
    status_code = 403
    default_message = "Access denied. Admin privileges required."


class NotFound(CatalogError):
    status_code = 404
    default_message = "Not found"


class Conflict(CatalogError):
    default_message = "Conflict"


class InvalidReference(CatalogError):
    default_message = "Invalid reference"


class UnsupportedMediaType(CatalogError):
    status_code = 415
    default_message = "Only image files are allowed!"


class PayloadTooLarge(CatalogError):
    status_code = 413
    default_message = "File too large"


def field_errors(errors) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``[{field, message}]``.

    Messages raised from our own validators are used verbatim instead of
    pydantic's "Value error, ..." wording.
    """
    out = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(loc) or "__root__"
        ctx_error = (err.get("ctx") or {}).get("error")
        message = str(ctx_error) if isinstance(ctx_error, ValueError) else err.get("msg", "Invalid value")
        out.append({"field": field, "message": message})
    return out


def validate(schema, data: dict):
    """Build ``schema`` from ``data`` or raise ValidationFailed."""
    try:
        return schema(**data)
    except ValidationError as e:
        raise ValidationFailed.from_pydantic(e.errors()) from e
