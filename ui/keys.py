"""Key events and translation of raw curses input into them."""

import curses
from dataclasses import dataclass
from typing import Optional, Union

CHAR = "CHAR"
ENTER = "ENTER"
BACKSPACE = "BACKSPACE"
DELETE = "DELETE"
LEFT = "LEFT"
RIGHT = "RIGHT"
UP = "UP"
DOWN = "DOWN"
HOME = "HOME"
END = "END"
ESC = "ESC"
CTRL_C = "CTRL_C"
CTRL_D = "CTRL_D"
CTRL_P = "CTRL_P"
CTRL_S = "CTRL_S"
CTRL_U = "CTRL_U"
CTRL_V = "CTRL_V"
CTRL_X = "CTRL_X"
RESIZE = "RESIZE"
UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class KeyEvent:
    name: str
    char: Optional[str] = None

    @classmethod
    def of(cls, char: str) -> "KeyEvent":
        return cls(CHAR, char)

    def __str__(self) -> str:
        return self.char if self.name == CHAR else self.name


_CONTROL_CHARS = {
    "\x1b": ESC,
    "\n": ENTER,
    "\r": ENTER,
    "\x7f": BACKSPACE,
    "\x08": BACKSPACE,
    "\x03": CTRL_C,
    "\x04": CTRL_D,
    "\x10": CTRL_P,
    "\x13": CTRL_S,
    "\x15": CTRL_U,
    "\x16": CTRL_V,
    "\x18": CTRL_X,
}


def _special_keys():
    mapping = {
        curses.KEY_BACKSPACE: BACKSPACE,
        curses.KEY_ENTER: ENTER,
        curses.KEY_LEFT: LEFT,
        curses.KEY_RIGHT: RIGHT,
        curses.KEY_UP: UP,
        curses.KEY_DOWN: DOWN,
        curses.KEY_HOME: HOME,
        curses.KEY_END: END,
        curses.KEY_RESIZE: RESIZE,
    }
    # Forward-delete is not exposed by every terminfo build.
    mapping[getattr(curses, "KEY_DC", 330)] = DELETE
    return mapping


_SPECIAL_KEYS = _special_keys()


def normalize_key(key: Union[int, str]) -> KeyEvent:
    """
    Translate a value returned by ``window.get_wch()`` into a KeyEvent.

    Args:
        key: A character (str) or a curses key code (int).

    Returns:
        KeyEvent: The normalized key; unmapped input becomes UNKNOWN.
    """
    if isinstance(key, int):
        return KeyEvent(_SPECIAL_KEYS.get(key, UNKNOWN))
    if key in _CONTROL_CHARS:
        return KeyEvent(_CONTROL_CHARS[key])
    if len(key) == 1 and key.isprintable():
        return KeyEvent.of(key)
    return KeyEvent(UNKNOWN)
