"""Python Client for the Forum Shield API.

This module provides a high-level, Pythonic interface for interacting with the
Forum Shield service. It handles authentication headers and error parsing.

Typical Usage:
    client = ForumShieldClient(base_url="http://localhost:3000")
    post = client.create_post("Hello <b>world</b>")
    client.create_comment(post["id"], "Nice post")
"""

import os
import requests
from typing import Any, Dict, Optional


class ForumShieldError(Exception):
    """Base exception for all client-side Forum Shield errors."""
    pass


class ForumShieldAPIError(ForumShieldError):
    """Exception raised when the API returns an error response (4xx or 5xx).

    Attributes:
        message (str): The error description.
        status_code (int): The HTTP status code returned by the API.
    """
    def __init__(self, message, status_code):
        super().__init__(f"{message} (Status: {status_code})")
        self.message = message
        self.status_code = status_code


class ForumShieldClient:
    """A synchronous client wrapper for the Forum Shield REST API."""

    def __init__(self, base_url: str = None, api_key: str = None, timeout: float = 10.0):
        """Initializes the client with connection details.

        Args:
            base_url (str, optional): The root URL of the service.
                Defaults to the FORUM_SHIELD_URL env var or "http://localhost:3000".
            api_key (str, optional): Sent as `X-API-Key` when set, for
                deployments behind an authenticating proxy.
                Defaults to the FORUM_SHIELD_API_KEY env var.
            timeout (float): Per-request timeout in seconds.

        Raises:
            ForumShieldError: If the base_url is empty.
        """
        # Remove trailing slash to prevent double-slash URLs (e.g. http://host//api)
        self.base_url = (base_url or os.getenv("FORUM_SHIELD_URL", "http://localhost:3000")).rstrip("/")
        self.api_key = api_key or os.getenv("FORUM_SHIELD_API_KEY")
        self.timeout = timeout

        if not self.base_url:
            raise ForumShieldError("Forum Shield base URL is required. Set FORUM_SHIELD_URL env var.")

    def _get_headers(self) -> Dict[str, str]:
        """Constructs the standard HTTP headers for requests."""
        headers = {}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _handle_error(self, resp: requests.Response):
        """Parses raw HTTP responses to raise structured exceptions.

        It attempts to extract the `detail` message from the FastAPI JSON body
        before falling back to the raw text body.

        Raises:
            ForumShieldAPIError: If the status code indicates failure (4xx/5xx).
        """
        try:
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            try:
                error_detail = resp.json().get("detail", str(e))
            except ValueError:
                error_detail = resp.text or str(e)

            raise ForumShieldAPIError(error_detail, resp.status_code) from e

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = requests.request(
                method,
                f"{self.base_url}{path}",
                headers=self._get_headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            raise ForumShieldError(f"Connection Failed: {e}") from e

        self._handle_error(resp)
        return resp.json()

    # --- Posts ---
    def create_post(self, content: str) -> Dict[str, Any]:
        """Publishes a post. The stored content comes back masked and sanitized."""
        return self._request("POST", "/api/posts", json={"content": content})

    def list_posts(self, page: int = 1, per_page: Optional[int] = None) -> Dict[str, Any]:
        """Returns one page of posts, newest first."""
        params = {"page": page}
        if per_page:
            params["per_page"] = per_page
        return self._request("GET", "/api/posts", params=params)

    def get_post(self, post_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/posts/{post_id}")

    # --- Comments ---
    def create_comment(self, post_id: str, content: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/posts/{post_id}/comments", json={"content": content})

    def list_comments(self, post_id: str, page: int = 1, per_page: Optional[int] = None) -> Dict[str, Any]:
        """Returns one page of a post's comments, oldest first."""
        params = {"page": page}
        if per_page:
            params["per_page"] = per_page
        return self._request("GET", f"/api/posts/{post_id}/comments", params=params)

    # --- Filter administration ---
    def reload_filter(self) -> Dict[str, Any]:
        """Asks the server to re-read its banned-term list.

        Returns:
            Dict[str, Any]: `{"success": True, "message": ..., "count": N}`.

        Raises:
            ForumShieldAPIError: If the list could not be read; the server
                keeps using the previous list.
        """
        return self._request("POST", "/api/filter/reload")

    def test_filter(self, content: str) -> Dict[str, Any]:
        """Runs `content` through the live pipeline without storing it.

        Returns:
            Dict[str, Any]: `{"original": ..., "filtered": ..., "matched": [...]}`.
        """
        return self._request("POST", "/api/filter/test", json={"content": content})
