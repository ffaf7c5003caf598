"""
Dashboard error types.

TrackerError is raised by the REST client. FetchFailed and MutationFailed
are what background tasks hand back to the event loop instead of raising;
widgets render them as inline banners.
"""
from __future__ import annotations


class IssueDeckError(Exception):
    """Base class for dashboard errors."""


class ConfigError(IssueDeckError):
    pass


class TrackerError(IssueDeckError):
    """A failed call to the issue tracker (transport error or non-2xx response)."""

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = " ".join(message.split("\n")).strip()
        prefix = f"HTTP {status}: " if status is not None else ""
        super().__init__(prefix + self.message)


class FetchFailed(IssueDeckError):
    """Loading ``target`` failed; recoverable through an explicit retry."""

    def __init__(self, target: str, cause: BaseException) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"{target}: {describe(cause)}")


class MutationFailed(IssueDeckError):
    """A write issued by the widget ``origin`` failed."""

    def __init__(self, origin: str, cause: BaseException) -> None:
        self.origin = origin
        self.cause = cause
        super().__init__(f"{origin}: {describe(cause)}")


class InvalidTransition(IssueDeckError):
    def __init__(self, widget: str, state: str, action: str) -> None:
        self.widget = widget
        self.state = state
        self.action = action
        super().__init__(f"{widget}: cannot {action} while {state}")


class UnknownTarget(IssueDeckError):
    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"unknown fetch target: {target!r}")


def describe(exc: BaseException) -> str:
    """One-line, user-facing text for an exception."""
    if isinstance(exc, TrackerError):
        return exc.message or f"HTTP {exc.status}"
    text = " ".join(str(exc).split())
    return text or type(exc).__name__
