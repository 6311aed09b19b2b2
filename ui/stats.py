"""
Stats View State Machine

Lists the user's recent posts and shows the public metrics and replies of
the selected one. Loading happens synchronously on the UI thread.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from config import settings
from data.models import Post
from services.protocols import StatsGateway
from ui import keys
from ui.keys import KeyEvent
from utils.exceptions import SocialMediaError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Loading:
    message: str


@dataclass(frozen=True)
class PostList:
    pass


@dataclass(frozen=True)
class StatsDetail:
    pass


@dataclass(frozen=True)
class StatsError:
    message: str


StatsState = Union[Loading, PostList, StatsDetail, StatsError]


class StatsSession:
    """
    Navigation state for the stats view.

    Args:
        fetch_replies: Returns the replies of a post id; may raise SocialMediaError.
    """

    def __init__(self, fetch_replies: Callable[[str], List[Post]]):
        self.fetch_replies = fetch_replies
        self.state: StatsState = Loading("Fetching posts...")
        self.posts: List[Post] = []
        self.selected_index = 0
        self.replies: List[Post] = []
        self.scroll_offset = 0

    def set_posts(self, posts: List[Post]) -> None:
        self.posts = list(posts)
        self.selected_index = 0
        if self.posts:
            self.state = PostList()
        else:
            self.state = StatsError("No posts found")

    def fail(self, message: str) -> None:
        self.state = StatsError(message)

    def selected_post(self) -> Optional[Post]:
        if 0 <= self.selected_index < len(self.posts):
            return self.posts[self.selected_index]
        return None

    def next(self) -> None:
        if not self.posts:
            return
        self.selected_index = (self.selected_index + 1) % len(self.posts)

    def previous(self) -> None:
        if not self.posts:
            return
        self.selected_index = (self.selected_index - 1) % len(self.posts)

    def open_detail(self) -> None:
        """Fetch replies of the selected post and show its detail view."""
        post = self.selected_post()
        if post is None:
            return
        try:
            replies = self.fetch_replies(post.id)
        except SocialMediaError as e:
            logger.error(f"Failed to fetch replies for {post.id}: {e}")
            self.state = StatsError(f"Failed to fetch replies: {e}")
            return
        self.replies = list(replies)
        self.scroll_offset = 0
        self.state = StatsDetail()

    def scroll_down(self) -> None:
        if self.scroll_offset < max(len(self.replies) - 1, 0):
            self.scroll_offset += 1

    def scroll_up(self) -> None:
        if self.scroll_offset > 0:
            self.scroll_offset -= 1

    def handle_key(self, key: KeyEvent) -> bool:
        """
        React to one key press.

        Returns:
            bool: False when the user asked to exit.
        """
        quit_key = key.name == keys.CHAR and key.char in ("q", "Q")
        state = self.state

        if isinstance(state, PostList):
            if key.name in (keys.ESC, keys.CTRL_C) or quit_key:
                return False
            if key.name == keys.DOWN:
                self.next()
            elif key.name == keys.UP:
                self.previous()
            elif key.name == keys.ENTER:
                self.open_detail()
            return True

        if isinstance(state, StatsDetail):
            if quit_key or key.name == keys.CTRL_C:
                return False
            if key.name == keys.ESC:
                self.state = PostList()
            elif key.name == keys.DOWN:
                self.scroll_down()
            elif key.name == keys.UP:
                self.scroll_up()
            return True

        if isinstance(state, StatsError):
            return False

        # Loading: only an explicit quit is honoured.
        return not (quit_key or key.name in (keys.ESC, keys.CTRL_C))


def load_stats(gateway: StatsGateway, session: StatsSession,
               limit: int = settings.STATS_FETCH_LIMIT) -> None:
    """
    Fetch the current user's recent posts into the session.

    API failures leave the session in StatsError instead of raising.
    """
    try:
        user = gateway.get_current_user()
        logger.info(f"Loading stats for @{user.username}")
        posts = gateway.get_user_posts(user.id, limit)
    except SocialMediaError as e:
        logger.error(f"Failed to load posts: {e}")
        session.fail(f"Failed to load posts: {e}")
        return
    session.set_posts(posts)
