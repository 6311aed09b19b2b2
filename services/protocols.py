"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for the collaborators of the
posting pipeline and the UI state machines. These protocols enable loose
coupling, dependency injection, and easier testing.

Protocols defined:
- PostGateway: what the post pipeline needs from the API layer
- StatsGateway: what the stats view needs from the API layer
- ImageSource: clipboard and file image readers used while composing
"""

from typing import List, Optional, Protocol

from data.models import Post, UserProfile


class PostGateway(Protocol):
    """Protocol defining the write side of the API (TwitterService)."""

    def upload_media(self, image_data: bytes) -> str:
        """Upload PNG bytes and return the media id.

        Raises:
            SocialMediaError: On transport, HTTP or response-format failure.
        """
        ...

    def create_post(self, text: str, media_id: Optional[str] = None) -> str:
        """Create a post and return its id.

        Raises:
            SocialMediaError: On transport, HTTP or response-format failure.
        """
        ...


class StatsGateway(Protocol):
    """Protocol defining the read side of the API used by the stats view."""

    def get_current_user(self) -> UserProfile:
        ...

    def get_user_posts(self, user_id: str, max_results: int = 10) -> List[Post]:
        ...

    def get_post_replies(self, post_id: str, max_results: int = 10) -> List[Post]:
        ...


class ImageSource(Protocol):
    """Protocol for obtaining PNG-encoded images while composing."""

    def from_clipboard(self) -> bytes:
        """Return the clipboard image as PNG bytes.

        Raises:
            ImageError: If the clipboard holds no usable image.
        """
        ...

    def from_file(self, path: str) -> bytes:
        """Decode an image file and return it re-encoded as PNG.

        Raises:
            ImageError: If the file is missing or not a decodable image.
        """
        ...
