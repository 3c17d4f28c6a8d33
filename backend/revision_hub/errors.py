"""
Domain exceptions.

The core modules raise these and nothing else; the web layer maps them to
HTTP responses using ``status_code`` and ``error_code``.
"""
from __future__ import annotations
from typing import Optional


class RevisionHubError(Exception):
	"""Base error with a consistent structure for API responses."""

	status_code: int = 400
	error_code: str = "ERROR"

	def __init__(self, detail: str, error_code: Optional[str] = None) -> None:
		super().__init__(detail)
		self.detail = detail
		if error_code is not None:
			self.error_code = error_code


class ValidationError(RevisionHubError):
	status_code = 422
	error_code = "VALIDATION_ERROR"

	def __init__(self, detail: str, field: Optional[str] = None) -> None:
		super().__init__(detail, f"VALIDATION_ERROR_{field.upper()}" if field else None)
		self.field = field


class NotFoundError(RevisionHubError):
	status_code = 404
	error_code = "NOT_FOUND"

	def __init__(self, resource: str, identifier: object) -> None:
		super().__init__(f"{resource} not found: {identifier}")
		self.resource = resource
		self.identifier = identifier


class AuthorizationError(RevisionHubError):
	status_code = 403
	error_code = "FORBIDDEN"

	def __init__(self, detail: str = "Not authorized to access this topic") -> None:
		super().__init__(detail)


class AuthenticationError(RevisionHubError):
	status_code = 401
	error_code = "UNAUTHORIZED"

	def __init__(self, detail: str = "Could not validate credentials") -> None:
		super().__init__(detail)


class ConflictError(RevisionHubError):
	status_code = 409
	error_code = "CONFLICT"
