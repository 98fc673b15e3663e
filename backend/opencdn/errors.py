"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``opencdn.main`` renders them as
``{"error": code, "message": ..., **context}`` with ``status_code``.
"""

from __future__ import annotations

from typing import Any


class OpenCDNError(Exception):
    """Base class for every expected, client-visible failure."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.context}


class MissingCredential(OpenCDNError):
    status_code = 401
    code = "missing_credential"
    default_message = "Please provide an API key in the x-api-key header"


class InvalidCredential(OpenCDNError):
    status_code = 401
    code = "invalid_credential"
    default_message = "The provided API key is not recognized. Please check your credentials."


class BadRequest(OpenCDNError):
    status_code = 400
    code = "bad_request"
    default_message = "Bad Request"


class PathEscape(BadRequest):
    code = "path_escape"
    default_message = "The requested path resolves outside the storage root"


class NotAFile(BadRequest):
    code = "not_a_file"
    default_message = "Path is a directory, not a file. Use the folder delete endpoint instead."


class NotAFolder(BadRequest):
    code = "not_a_folder"
    default_message = "Path is a file, not a folder"


class SelfContainment(BadRequest):
    code = "self_containment"
    default_message = "Cannot move a folder into itself or one of its descendants"


class InvalidArchive(BadRequest):
    code = "invalid_archive"
    default_message = "The uploaded archive is not a valid ZIP file"


class NotFound(OpenCDNError):
    status_code = 404
    code = "not_found"
    default_message = "Not Found"


class Conflict(OpenCDNError):
    status_code = 409
    code = "conflict"
    default_message = "Conflict: target already exists"


class PayloadTooLarge(OpenCDNError):
    status_code = 413
    code = "payload_too_large"
    default_message = "Payload Too Large: File size exceeds API key limit"


class InternalError(OpenCDNError):
    status_code = 500
    code = "internal_error"
    default_message = "Internal Server Error"
