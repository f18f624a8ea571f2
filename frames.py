"""
frames.py

Frame description handed to the frame template (image + up to 4 buttons),
and parsing of what a client posts back.

Clients only report which button was pressed, so the post URL carries the
rest of the move request once for the whole frame:

    /api/game?action=move&state=<token>&values=0|3|5|8

and button N stands for the N-th entry of values.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

MAX_BUTTONS = 4
MAX_POST_URL_BYTES = 256
VALUE_SEPARATOR = "|"
MOVE_ACTION = "move"
NEW_GAME = "newgame"


@dataclass
class Button:
    label: str
    value: str = ""
    action: str = "post"        # 'post' or 'link'
    target: Optional[str] = None  # URL for link buttons


@dataclass
class Frame:
    title: str
    image: str
    post_url: str
    buttons: List[Button] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        if len(self.buttons) > MAX_BUTTONS:
            raise ValueError(f"a frame holds at most {MAX_BUTTONS} buttons")
        if len(self.post_url.encode("utf-8")) > MAX_POST_URL_BYTES:
            raise ValueError(f"post_url is longer than {MAX_POST_URL_BYTES} bytes: {self.post_url}")


@dataclass
class MoveRequest:
    token: str
    index: int


def parse_move_request(action: Optional[str], token: Optional[str],
                       value: Optional[str]) -> Optional[MoveRequest]:
    """(action, state token, pressed value) -> MoveRequest, None for anything else."""
    if action != MOVE_ACTION or not token or not value:
        return None
    if not (value.isascii() and value.isdigit()):
        return None
    index = int(value)
    if not 0 <= index <= 8:
        return None
    return MoveRequest(token, index)


def pack_values(buttons: List[Button]) -> str:
    return VALUE_SEPARATOR.join(b.value for b in buttons)


def pressed_value(packed: Optional[str], button_index) -> Optional[str]:
    """Value of the 1-based button_index out of a packed values string."""
    if not packed:
        return None
    try:
        i = int(button_index)
    except (TypeError, ValueError):
        return None
    values = packed.split(VALUE_SEPARATOR)
    if not 1 <= i <= len(values):
        return None
    return values[i - 1] or None
