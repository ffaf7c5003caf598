"""
issuedeck: a keyboard-driven GitHub issue dashboard.

Built on issuedeck_tui: widgets live in ``issuedeck.widgets``, the state
they share in ``issuedeck.context`` and the event loop in ``issuedeck.app``.
"""
from .app import App, create_context, run_app
from .config import VERSION, AppConfig, FeatureFlags, load_config
from .context import AppContext
from .errors import (
    ConfigError,
    FetchFailed,
    InvalidTransition,
    IssueDeckError,
    MutationFailed,
    TrackerError,
    UnknownTarget,
)
from .fetch import AsyncFetchCoordinator, FetchStatus
from .github import GitHubClient, TrackerClient

__version__ = VERSION

__all__ = [
    "App",
    "AppConfig",
    "AppContext",
    "AsyncFetchCoordinator",
    "ConfigError",
    "FeatureFlags",
    "FetchFailed",
    "FetchStatus",
    "GitHubClient",
    "InvalidTransition",
    "IssueDeckError",
    "MutationFailed",
    "TrackerClient",
    "TrackerError",
    "UnknownTarget",
    "create_context",
    "load_config",
    "run_app",
]
