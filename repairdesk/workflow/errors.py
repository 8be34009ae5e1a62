"""Workflow error taxonomy.

Each request-facing error carries the HTTP status it maps to; the API layer
turns them into responses with a single exception handler.
"""

from __future__ import annotations


class WorkflowError(Exception):
    status_code = 400

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(WorkflowError):
    """The payload is missing a field the target status requires."""

    status_code = 400


class RoleError(WorkflowError):
    """The actor is not allowed to apply this transition."""

    status_code = 403


class NotFoundError(WorkflowError):
    status_code = 404


class TerminalStateError(WorkflowError):
    """The record is completed or cancelled and accepts no further transitions."""

    status_code = 409


class ConflictError(WorkflowError):
    """Another writer changed the record between load and commit."""

    status_code = 409


class NotificationDispatchError(Exception):
    """A single outbound message could not be delivered. Never leaves the dispatcher."""

    def __init__(self, message: str, *, recipient: str = "", channel: str = ""):
        super().__init__(message)
        self.recipient = recipient
        self.channel = channel


class InvalidPhoneError(NotificationDispatchError):
    pass
