"""
Curses renderer and UI loops.

The renderer only reads SessionView / StatsSession data. Each compose frame
draws, then checks the pipeline for an outcome, then waits up to one poll
interval for a key, in that order, so a finished post is applied before any
new key is routed.
"""

import curses
from typing import Callable, Optional, Protocol

from config import settings
from data.models import PostOutcome
from ui import keys
from ui.keys import KeyEvent, normalize_key
from ui.session import (
    Composing, DraftBrowser, Error, FilePrompt, Posting, Session, SessionState,
    SessionView, Success,
)
from ui.stats import Loading, PostList, StatsDetail, StatsError, StatsSession
from utils.helpers import truncate_text
from utils.logger import get_logger

logger = get_logger(__name__)

COLOR_OK, COLOR_ERROR, COLOR_BUSY, COLOR_TITLE = 1, 2, 3, 4

INSTRUCTIONS = {
    Composing: ("Ctrl+U: image file | Ctrl+V: paste image | Ctrl+X: drop image | "
                "Ctrl+S: save draft | Ctrl+D: drafts | Ctrl+P: post | Esc: exit"),
    FilePrompt: "Enter: confirm | Esc: cancel",
    DraftBrowser: "Up/Down: navigate | Enter: load draft | Delete: remove draft | Esc: back",
    Posting: "Please wait...",
    Success: "Press any key to post again, or Esc to exit",
    Error: "Press any key to continue, or Esc to exit",
}


def post_url(post_id: str) -> str:
    return settings.TWITTER_POST_URL_TEMPLATE.format(post_id=post_id)


def status_text(view: SessionView) -> str:
    """One-line status for the current session state."""
    state = view.state
    if isinstance(state, Composing):
        parts = [f"Characters: {view.char_count}/{settings.TWITTER_CHARACTER_LIMIT}"]
        if view.has_image:
            parts.append("Image attached")
        if view.draft_loaded:
            parts.append("Draft loaded")
        if view.status_message:
            parts.append(view.status_message)
        return " | ".join(parts)
    if isinstance(state, FilePrompt):
        return "Enter the path to your image file"
    if isinstance(state, DraftBrowser):
        return f"Drafts: {len(view.draft_previews)} saved"
    if isinstance(state, Posting):
        return "Posting to X..."
    if isinstance(state, Success):
        return f"Posted successfully! {post_url(state.remote_id)}"
    if isinstance(state, Error):
        return f"Error: {state.message}"
    raise TypeError(f"Unknown session state: {state!r}")


def instructions_text(state: SessionState) -> str:
    return INSTRUCTIONS[type(state)]


class Screen(Protocol):
    """What the loops need from a terminal."""

    def draw_session(self, view: SessionView) -> None:
        ...

    def draw_stats(self, stats: StatsSession) -> None:
        ...

    def read_key(self, timeout_ms: int) -> Optional[KeyEvent]:
        ...


class CursesScreen:
    """Screen implementation on top of a curses window."""

    def __init__(self, stdscr):
        self.stdscr = stdscr
        curses.raw()
        stdscr.keypad(True)
        self.colors = False
        if curses.has_colors():
            curses.start_color()
            try:
                curses.use_default_colors()
                background = -1
            except curses.error:
                background = curses.COLOR_BLACK
            curses.init_pair(COLOR_OK, curses.COLOR_GREEN, background)
            curses.init_pair(COLOR_ERROR, curses.COLOR_RED, background)
            curses.init_pair(COLOR_BUSY, curses.COLOR_YELLOW, background)
            curses.init_pair(COLOR_TITLE, curses.COLOR_CYAN, background)
            self.colors = True

    def _attr(self, pair: int, extra: int = 0) -> int:
        return (curses.color_pair(pair) if self.colors else 0) | extra

    def _safe_add(self, y: int, x: int, text: str, attr: int = 0) -> None:
        h, w = self.stdscr.getmaxyx()
        if y < 0 or y >= h or x >= w:
            return
        try:
            self.stdscr.addnstr(y, x, text, max(w - x - 1, 0), attr)
        except curses.error:
            pass

    def read_key(self, timeout_ms: int) -> Optional[KeyEvent]:
        self.stdscr.timeout(timeout_ms)
        try:
            raw = self.stdscr.get_wch()
        except curses.error:
            return None
        return normalize_key(raw)

    # -------------------------------------------------------------------------
    # Compose screen
    # -------------------------------------------------------------------------

    def draw_session(self, view: SessionView) -> None:
        stdscr = self.stdscr
        stdscr.erase()
        h, w = stdscr.getmaxyx()
        body_top, body_bottom = 1, max(h - 5, 1)
        state = view.state
        cursor = None

        if isinstance(state, FilePrompt):
            self._safe_add(0, 0, "Enter image file path", self._attr(COLOR_TITLE, curses.A_BOLD))
            self._safe_add(body_top, 1, view.file_path_input)
            cursor = (body_top, min(1 + len(view.file_path_input), w - 2))
        elif isinstance(state, DraftBrowser):
            self._safe_add(0, 0, "Saved Drafts", self._attr(COLOR_TITLE, curses.A_BOLD))
            if not view.draft_previews:
                self._safe_add(body_top, 1, "(no drafts)", curses.A_DIM)
            for i, preview in enumerate(view.draft_previews[:body_bottom - body_top + 1]):
                selected = i == view.selected_draft
                marker = "> " if selected else "  "
                self._safe_add(body_top + i, 0, marker + preview,
                               curses.A_REVERSE if selected else 0)
        else:
            title = "Posting..." if isinstance(state, Posting) else "Compose your post"
            self._safe_add(0, 0, title, self._attr(COLOR_TITLE, curses.A_BOLD))
            cursor = self._draw_text(view, body_top, body_bottom, w)

        status_color = {Success: COLOR_OK, Error: COLOR_ERROR, Posting: COLOR_BUSY}.get(type(state))
        status_attr = self._attr(status_color) if status_color else 0
        self._safe_add(h - 3, 0, status_text(view), status_attr)
        self._safe_add(h - 1, 0, instructions_text(state), curses.A_DIM)

        if cursor is not None and isinstance(state, (Composing, FilePrompt)):
            _set_cursor_visibility(1)
            try:
                stdscr.move(*cursor)
            except curses.error:
                pass
        else:
            _set_cursor_visibility(0)
        stdscr.refresh()

    def _draw_text(self, view: SessionView, top: int, bottom: int, width: int):
        row, col = view.cursor
        height = bottom - top + 1
        first = max(0, row - height + 1)
        text_width = max(width - 2, 1)
        offset = max(0, col - text_width + 1)
        for i, line in enumerate(view.lines[first:first + height]):
            self._safe_add(top + i, 1, line[offset:offset + text_width])
        return top + row - first, 1 + col - offset

    # -------------------------------------------------------------------------
    # Stats screen
    # -------------------------------------------------------------------------

    def draw_stats(self, stats: StatsSession) -> None:
        stdscr = self.stdscr
        stdscr.erase()
        _set_cursor_visibility(0)
        h, w = stdscr.getmaxyx()
        state = stats.state

        if isinstance(state, (Loading, StatsError)):
            color = COLOR_BUSY if isinstance(state, Loading) else COLOR_ERROR
            message = truncate_text(state.message, max(w - 4, 10))
            self._safe_add(h // 2, max((w - len(message)) // 2, 0), message, self._attr(color))
        elif isinstance(state, PostList):
            self._safe_add(0, 0, "Your Recent Posts", self._attr(COLOR_TITLE, curses.A_BOLD))
            for i, post in enumerate(stats.posts[:max(h - 3, 0)]):
                selected = i == stats.selected_index
                preview = truncate_text(post.text.replace("\n", " "), settings.POST_PREVIEW_LENGTH)
                line = f"{post.created_date} | {preview}"
                self._safe_add(2 + i, 0, (">> " if selected else "   ") + line,
                               curses.A_REVERSE if selected else 0)
            self._safe_add(h - 1, 0, "Up/Down: Navigate | Enter: View Stats | Esc: Exit", curses.A_DIM)
        elif isinstance(state, StatsDetail):
            self._draw_detail(stats, h)

        stdscr.refresh()

    def _draw_detail(self, stats: StatsSession, h: int) -> None:
        post = stats.selected_post()
        self._safe_add(0, 0, "Post Statistics", self._attr(COLOR_TITLE, curses.A_BOLD))
        if post is None:
            return
        y = 2
        for line in post.text.split("\n")[:5]:
            self._safe_add(y, 1, line)
            y += 1
        y += 1
        metrics = post.public_metrics
        if metrics is None:
            self._safe_add(y, 1, "No metrics available", self._attr(COLOR_ERROR))
            y += 1
        else:
            for label, value in (("Likes", metrics.like_count), ("Retweets", metrics.retweet_count),
                                 ("Replies", metrics.reply_count), ("Quotes", metrics.quote_count),
                                 ("Impressions", metrics.impression_count)):
                self._safe_add(y, 2, f"{label}: {value}")
                y += 1
        y += 1
        self._safe_add(y, 1, f"Replies ({len(stats.replies)})", curses.A_BOLD)
        y += 1
        for reply in stats.replies[stats.scroll_offset:]:
            if y >= h - 2:
                break
            self._safe_add(y, 2, truncate_text(reply.text.replace("\n", " "), settings.POST_PREVIEW_LENGTH))
            y += 1
        self._safe_add(h - 1, 0, "Up/Down: Scroll replies | Esc: Back to List | Q: Exit", curses.A_DIM)


def _set_cursor_visibility(visibility: int) -> None:
    try:
        curses.curs_set(visibility)
    except curses.error:
        pass


# =============================================================================
# Loops
# =============================================================================

def run_compose_frame(session: Session, poll_outcome: Callable[[], Optional[PostOutcome]],
                      screen: Screen, timeout_ms: int = settings.UI_POLL_INTERVAL_MS) -> bool:
    """
    Draw, deliver a ready outcome, then route at most one key.

    Returns:
        bool: False once the user asked to exit.
    """
    screen.draw_session(session.view())

    outcome = poll_outcome()
    if outcome is not None:
        session.apply_outcome(outcome)

    key = screen.read_key(timeout_ms)
    if key is None or key.name in (keys.RESIZE, keys.UNKNOWN):
        return True
    return session.handle_key(key)


def run_compose(screen: Screen, session: Session,
                poll_outcome: Callable[[], Optional[PostOutcome]]) -> None:
    while run_compose_frame(session, poll_outcome, screen):
        pass


def run_stats(screen: Screen, stats: StatsSession,
              timeout_ms: int = settings.UI_POLL_INTERVAL_MS) -> None:
    while True:
        screen.draw_stats(stats)
        key = screen.read_key(timeout_ms)
        if key is None or key.name in (keys.RESIZE, keys.UNKNOWN):
            continue
        if not stats.handle_key(key):
            return
