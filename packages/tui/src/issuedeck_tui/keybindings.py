"""
Keybindings: action names mapped to key identifiers.

Editors and widgets ask ``get_keybindings().matches(data, "submit")`` instead
of testing raw sequences, so users can rebind actions in one place.
"""
from __future__ import annotations

from typing import Literal

from .keys import KeyId, matches_key

Action = Literal[
    # Cursor movement
    "cursorUp",
    "cursorDown",
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteToLineStart",
    "deleteToLineEnd",
    # Text input
    "newLine",
    "submit",
    "togglePreview",
    "undo",
    # Lists and pickers
    "selectUp",
    "selectDown",
    "selectPageUp",
    "selectPageDown",
    "selectConfirm",
    "selectCancel",
    "toggle",
    # Dashboard navigation
    "quit",
    "help",
    "focusNext",
    "focusPrev",
    "scrollDown",
    "scrollUp",
    "back",
    "retry",
    "compose",
    "editLabels",
    "react",
    "toggleState",
    "jumpToIssue",
    "newLabel",
    "cycleState",
]

KeybindingsConfig = dict[str, "KeyId | list[KeyId]"]

DEFAULT_KEYBINDINGS: dict[str, list[KeyId]] = {
    # Cursor movement
    "cursorUp":        ["up"],
    "cursorDown":      ["down"],
    "cursorLeft":      ["left", "ctrl+b"],
    "cursorRight":     ["right", "ctrl+f"],
    "cursorWordLeft":  ["alt+left", "ctrl+left", "alt+b"],
    "cursorWordRight": ["alt+right", "ctrl+right", "alt+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd":   ["end", "ctrl+e"],
    # Deletion
    "deleteCharBackward": ["backspace"],
    "deleteCharForward":  ["delete", "ctrl+d"],
    "deleteWordBackward": ["ctrl+w", "alt+backspace"],
    "deleteToLineStart":  ["ctrl+u"],
    "deleteToLineEnd":    ["ctrl+k"],
    # Text input
    "newLine": ["enter"],
    "submit":  ["ctrl+s", "alt+enter"],
    "togglePreview": ["ctrl+r"],
    "undo":    ["ctrl+z"],
    # Lists and pickers
    "selectUp":       ["up", "ctrl+p"],
    "selectDown":     ["down", "ctrl+n"],
    "selectPageUp":   ["pageUp"],
    "selectPageDown": ["pageDown"],
    "selectConfirm":  ["enter"],
    "selectCancel":   ["escape"],
    "toggle":         ["space"],
    # Dashboard navigation
    "quit":        ["q", "ctrl+c"],
    "help":        ["?"],
    "focusNext":   ["tab"],
    "focusPrev":   ["shift+tab"],
    "scrollDown":  ["j", "down"],
    "scrollUp":    ["k", "up"],
    "back":        ["escape"],
    "retry":       ["r"],
    "compose":     ["c"],
    "editLabels":  ["l"],
    "react":       ["e"],
    "toggleState": ["x"],
    "jumpToIssue": ["#", "g"],
    "newLabel":    ["ctrl+o"],
    "cycleState":  ["ctrl+t"],
}


class Keybindings:
    """Action → keys table: defaults overlaid with user overrides."""

    def __init__(self, config: KeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[str, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: KeybindingsConfig) -> None:
        self._action_to_keys.clear()
        for action, keys in DEFAULT_KEYBINDINGS.items():
            self._action_to_keys[action] = list(keys)
        for action, keys in config.items():
            if keys is None:
                continue
            self._action_to_keys[action] = keys if isinstance(keys, list) else [keys]

    def matches(self, data: str, action: str) -> bool:
        """Check if input data matches a specific action."""
        keys = self._action_to_keys.get(action)
        if not keys:
            return False
        return any(matches_key(data, k) for k in keys)

    def get_keys(self, action: str) -> list[KeyId]:
        return self._action_to_keys.get(action, [])

    def describe(self, action: str) -> str:
        """First bound key, for hint bars ("ctrl+s", "?")."""
        keys = self.get_keys(action)
        return keys[0] if keys else ""

    def set_config(self, config: KeybindingsConfig) -> None:
        self._build_maps(config)


_global_keybindings: Keybindings | None = None


def get_keybindings() -> Keybindings:
    global _global_keybindings
    if _global_keybindings is None:
        _global_keybindings = Keybindings()
    return _global_keybindings


def set_keybindings(manager: Keybindings) -> None:
    global _global_keybindings
    _global_keybindings = manager
