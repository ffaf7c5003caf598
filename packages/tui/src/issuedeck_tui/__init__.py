"""
issuedeck_tui: terminal interaction engine.

Focus routing, dirty-region rendering, differential screen output and a
markdown-to-styled-text pipeline for keyboard-driven dashboards.
"""
from .errors import FocusError, FocusUnreachable, InvalidFocusTarget
from .events import InputEvent, KeyEvent, PasteEvent, ResizeEvent, TerminalEvent
from .focus import ROOT, FocusNode, FocusTree, Interceptor, Widget
from .frame import BLANK, Cell, Rect, RenderFrame, rasterize
from .keybindings import DEFAULT_KEYBINDINGS, Keybindings, get_keybindings, set_keybindings
from .keys import KEY, matches_key, parse_key
from .scheduler import Region, RenderScheduler
from .screen import ScreenWriter
from .stdin_buffer import StdinBuffer
from .style import PLAIN, Line, Span, Style, line, line_text, line_width, parse_hex_color
from .terminal import ProcessTerminal, Terminal
from .utils import truncate_to_width, visible_width

__all__ = [
    "BLANK",
    "Cell",
    "DEFAULT_KEYBINDINGS",
    "FocusError",
    "FocusNode",
    "FocusTree",
    "FocusUnreachable",
    "InputEvent",
    "Interceptor",
    "InvalidFocusTarget",
    "KEY",
    "KeyEvent",
    "Keybindings",
    "Line",
    "PLAIN",
    "PasteEvent",
    "ProcessTerminal",
    "ROOT",
    "Rect",
    "Region",
    "RenderFrame",
    "RenderScheduler",
    "ResizeEvent",
    "ScreenWriter",
    "Span",
    "StdinBuffer",
    "Style",
    "Terminal",
    "TerminalEvent",
    "Widget",
    "get_keybindings",
    "line",
    "line_text",
    "line_width",
    "matches_key",
    "parse_hex_color",
    "parse_key",
    "rasterize",
    "set_keybindings",
    "truncate_to_width",
    "visible_width",
]
