from .line_input import LineInput
from .panel import border_style, panel, visible_window
from .spinner import Spinner
from .text_area import TextArea

__all__ = ["LineInput", "Spinner", "TextArea", "border_style", "panel", "visible_window"]
