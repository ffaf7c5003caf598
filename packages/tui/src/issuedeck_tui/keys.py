"""
Keyboard input decoding for legacy (xterm-style) terminal sequences.

API:
- parse_key(data): return the key identifier for one input sequence
- matches_key(data, key_id): check if input matches a key identifier
- is_printable(data): whether input is literal text
- KEY: helper constants for common keys

Key identifiers are lowercase names joined by "+" with modifiers in the
order ctrl, shift, alt: "ctrl+s", "shift+tab", "alt+left", "pageDown".
Printable characters are their own identifier ("j", "?", "é").
"""
from __future__ import annotations

import re

KeyId = str


class _KeyHelper:
    """Named key identifiers."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    shift_tab = "shift+tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


KEY = _KeyHelper()

# ─────────────────────────────────────────────────────────────────────────────
# Sequence tables
# ─────────────────────────────────────────────────────────────────────────────

_SEQ_KEY_IDS: dict[str, str] = {
    "\x1b": "escape",
    "\t": "tab",
    "\r": "enter",
    "\n": "enter",
    "\x1bOM": "enter",
    " ": "space",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x00": "ctrl+space",
    "\x1b[Z": "shift+tab",
    "\x1b\r": "alt+enter",
    "\x1b\x7f": "alt+backspace",
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[H": "home",
    "\x1bOH": "home",
    "\x1b[1~": "home",
    "\x1b[7~": "home",
    "\x1b[F": "end",
    "\x1bOF": "end",
    "\x1b[4~": "end",
    "\x1b[8~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[a": "shift+up",
    "\x1b[b": "shift+down",
    "\x1b[c": "shift+right",
    "\x1b[d": "shift+left",
    "\x1bOa": "ctrl+up",
    "\x1bOb": "ctrl+down",
    "\x1bOc": "ctrl+right",
    "\x1bOd": "ctrl+left",
    "\x1bb": "alt+left",
    "\x1bf": "alt+right",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
}

_CSI_NAMES = {"A": "up", "B": "down", "C": "right", "D": "left", "H": "home", "F": "end"}
_TILDE_NAMES = {"2": "insert", "3": "delete", "5": "pageUp", "6": "pageDown", "1": "home", "4": "end"}

# xterm modifier parameters: ESC[1;5A (ctrl+up), ESC[3;2~ (shift+delete)
_MOD_CSI_RE = re.compile(r"^\x1b\[1;(\d+)([ABCDHF])$")
_MOD_TILDE_RE = re.compile(r"^\x1b\[(\d+);(\d+)~$")

_MOD_SHIFT = 1
_MOD_ALT = 2
_MOD_CTRL = 4


def _with_modifiers(name: str, param: int) -> str:
    mod = param - 1
    mods: list[str] = []
    if mod & _MOD_CTRL:
        mods.append("ctrl")
    if mod & _MOD_SHIFT:
        mods.append("shift")
    if mod & _MOD_ALT:
        mods.append("alt")
    return "+".join(mods + [name])


def is_printable(data: str) -> bool:
    """True for literal text input (one or more printable characters)."""
    if not data or data[0] == "\x1b":
        return False
    return all(ch.isprintable() for ch in data)


def parse_key(data: str) -> str | None:
    """Parse raw terminal input and return a key identifier string, or None."""
    key_id = _SEQ_KEY_IDS.get(data)
    if key_id:
        return key_id

    m = _MOD_CSI_RE.match(data)
    if m:
        return _with_modifiers(_CSI_NAMES[m.group(2)], int(m.group(1)))
    m = _MOD_TILDE_RE.match(data)
    if m and m.group(1) in _TILDE_NAMES:
        return _with_modifiers(_TILDE_NAMES[m.group(1)], int(m.group(2)))

    if len(data) == 2 and data[0] == "\x1b":
        code = ord(data[1])
        if 1 <= code <= 26:
            return f"ctrl+alt+{chr(code + 96)}"
        if data[1].isprintable():
            return f"alt+{data[1].lower()}" if data[1].isalpha() else f"alt+{data[1]}"

    if len(data) == 1:
        code = ord(data)
        if 1 <= code <= 26:
            return f"ctrl+{chr(code + 96)}"
        if data.isprintable():
            return data

    return None


def matches_key(data: str, key_id: KeyId) -> bool:
    """Check whether ``data`` is the key identified by ``key_id``."""
    parsed = parse_key(data)
    if parsed is None:
        return False
    if key_id == "esc":
        key_id = "escape"
    elif key_id == "return":
        key_id = "enter"
    return parsed == key_id
