"""
Twitter Service Module

This module handles integration with the Twitter/X API.
Every request is signed with OAuth 1.0a (see services.oauth_signer) and sent
exactly once: there is no retry and no backoff. Failures surface as
TransportError, ApiError or SerializationError.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

import requests

from config import settings
from data.models import Credentials, Post, UserProfile
from services.oauth_signer import OAuthSigner, SigningRequest
from utils.exceptions import ApiError, SerializationError, TransportError
from utils.logger import get_logger

logger = get_logger(__name__)


def build_post_body(text: str, media_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the JSON body for creating a post.

    The ``media`` key is left out entirely when there is no media id.

    Args:
        text: The post text.
        media_id: Id returned by the media upload endpoint, if any.

    Returns:
        Dict[str, Any]: The request body.
    """
    body: Dict[str, Any] = {"text": text}
    if media_id is not None:
        body["media"] = {"media_ids": [media_id]}
    return body


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class TwitterService:
    """Service for Twitter/X integration."""

    def __init__(self, credentials: Credentials, signer: Optional[OAuthSigner] = None,
                 timeout: Optional[float] = None, api_base: Optional[str] = None,
                 upload_url: Optional[str] = None):
        """
        Initialize the Twitter service.

        Args:
            credentials: OAuth 1.0a secrets.
            signer: Signer to use; built from the credentials when omitted.
            timeout: Per-request timeout in seconds.
            api_base: Base URL of the v2 API.
            upload_url: Media upload endpoint.
        """
        self.credentials = credentials
        self.signer = signer or OAuthSigner(credentials)
        self.timeout = timeout if timeout is not None else settings.TWITTER_REQUEST_TIMEOUT
        self.api_base = (api_base or settings.TWITTER_API_BASE).rstrip("/")
        self.upload_url = upload_url or settings.TWITTER_UPLOAD_URL

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _authorization(self, method: str, url: str,
                       params: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        request = SigningRequest(method=method, base_url=url, query_params=params or {})
        return {"Authorization": self.signer.sign(request)}

    def _send(self, method: str, url: str, context: str,
              params: Optional[Dict[str, str]] = None, **kwargs) -> requests.Response:
        headers = self._authorization(method, url, params)
        headers.update(kwargs.pop("headers", {}))
        try:
            if method == "GET":
                response = requests.get(url, headers=headers, params=params,
                                        timeout=self.timeout, **kwargs)
            else:
                response = requests.post(url, headers=headers, params=params,
                                         timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{context}: request to {url} failed: {e}")
            raise TransportError(f"{context}: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"{context}: HTTP {response.status_code} from {url}")
            raise ApiError(response.status_code, response.text, context=context)
        return response

    @staticmethod
    def _json(response: requests.Response, context: str) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise SerializationError(f"{context}: response is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise SerializationError(f"{context}: expected a JSON object, got {type(payload).__name__}")
        return payload

    # -------------------------------------------------------------------------
    # Posting
    # -------------------------------------------------------------------------

    def upload_media(self, image_data: bytes) -> str:
        """
        Upload a PNG image.

        Args:
            image_data: Encoded PNG bytes.

        Returns:
            str: The media id to attach to a post.
        """
        context = "media upload"
        files = {"media": ("image.png", image_data, "image/png")}
        response = self._send("POST", self.upload_url, context, files=files)
        payload = self._json(response, context)

        media_id = payload.get("media_id_string")
        if not media_id:
            raise SerializationError(f"{context}: response missing media_id_string")
        logger.info(f"Uploaded media {media_id} ({len(image_data)} bytes)")
        return str(media_id)

    def create_post(self, text: str, media_id: Optional[str] = None) -> str:
        """
        Publish a post.

        Args:
            text: The post text.
            media_id: Optional id of an uploaded image.

        Returns:
            str: The id of the new post.
        """
        context = "create post"
        url = f"{self.api_base}/tweets"
        body = json.dumps(build_post_body(text, media_id), ensure_ascii=False).encode("utf-8")
        response = self._send("POST", url, context, data=body,
                              headers={"Content-Type": "application/json"})
        payload = self._json(response, context)

        data = payload.get("data") or {}
        post_id = data.get("id") if isinstance(data, dict) else None
        if not post_id:
            raise SerializationError(f"{context}: response missing data.id")
        logger.info(f"Successfully posted {post_id}")
        return str(post_id)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def get_current_user(self) -> UserProfile:
        """
        Fetch the account the access token belongs to.

        Returns:
            UserProfile: Id and username of the authenticated user.
        """
        context = "get current user"
        response = self._send("GET", f"{self.api_base}/users/me", context)
        data = self._json(response, context).get("data") or {}
        try:
            return UserProfile(id=str(data["id"]), username=data["username"])
        except (KeyError, TypeError) as e:
            raise SerializationError(f"{context}: response missing {e}") from e

    def _get_posts(self, url: str, params: Dict[str, str], context: str) -> List[Post]:
        response = self._send("GET", url, context, params=params)
        payload = self._json(response, context)
        rows = payload.get("data") or []
        try:
            posts = [Post.from_api(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"{context}: malformed post in response: {e}") from e
        logger.info(f"{context}: retrieved {len(posts)} posts")
        return posts

    def get_user_posts(self, user_id: str, max_results: int = settings.STATS_FETCH_LIMIT) -> List[Post]:
        """
        Fetch a user's most recent posts with their public metrics.

        Args:
            user_id: The account id.
            max_results: How many posts to ask for (clamped to the API range).

        Returns:
            List[Post]: Newest first, as returned by the API.
        """
        params = {
            "max_results": str(_clamp(max_results, settings.TWITTER_USER_POSTS_MIN_RESULTS,
                                      settings.TWITTER_API_MAX_RESULTS)),
            "tweet.fields": settings.TWITTER_POST_FIELDS,
        }
        return self._get_posts(f"{self.api_base}/users/{user_id}/tweets", params, "get user posts")

    def get_post_replies(self, post_id: str, max_results: int = settings.REPLIES_FETCH_LIMIT) -> List[Post]:
        """
        Fetch recent replies in a post's conversation.

        Args:
            post_id: The id of the conversation's root post.
            max_results: How many replies to ask for (clamped to the API range).

        Returns:
            List[Post]: Replies found by the recent-search endpoint.
        """
        params = {
            "query": f"conversation_id:{post_id}",
            "max_results": str(_clamp(max_results, settings.TWITTER_SEARCH_MIN_RESULTS,
                                      settings.TWITTER_API_MAX_RESULTS)),
            "tweet.fields": settings.TWITTER_POST_FIELDS,
        }
        return self._get_posts(f"{self.api_base}/tweets/search/recent", params, "get post replies")
