"""Dashboard widgets. Each one owns a focus node and a region of the same id."""
from .base import SubmittableWidget, Widget, WidgetState
from .color_picker import ColorPicker
from .comment_editor import CommentEditor
from .conversation import Conversation
from .details import DetailsScreen
from .global_keys import GlobalKeys
from .help import HelpOverlay
from .issue_list import IssueList
from .label_picker import LabelPicker, filter_labels
from .number_nav import NumberNav
from .reaction_picker import ReactionPicker
from .search_bar import SearchBar
from .status_bar import StatusBar

__all__ = [
    "ColorPicker",
    "CommentEditor",
    "Conversation",
    "DetailsScreen",
    "GlobalKeys",
    "HelpOverlay",
    "IssueList",
    "LabelPicker",
    "NumberNav",
    "ReactionPicker",
    "SearchBar",
    "StatusBar",
    "SubmittableWidget",
    "Widget",
    "WidgetState",
    "filter_labels",
]
