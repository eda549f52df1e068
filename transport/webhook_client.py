"""HTTP client for the webhook blob host: attachment uploads and pointer messages."""

import asyncio
import json
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from common.constants import (
    DEFAULT_ATTACHMENT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    RATE_LIMIT_SAFETY_FACTOR,
)
from filesystem.exceptions import TransportError
from transport.models import Message
from transport.retry import UPLOAD_RETRY, RetryPolicy, retry_async

logger = logging.getLogger(__name__)


class WebhookClient:
    """
    Async client for a Discord-style webhook.

    Uploads are retried under ``upload_retry`` (forever by default) because
    losing a piece loses file content. Message operations are not retried:
    they raise TransportError and the caller decides.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        upload_retry: RetryPolicy = UPLOAD_RETRY,
        attachment_base_url: str = DEFAULT_ATTACHMENT_BASE_URL,
        session: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize webhook client.

        Args:
            webhook_url: Full webhook URL (https://discord.com/api/webhooks/<id>/<token>)
            timeout: Request timeout in seconds
            upload_retry: Retry policy for attachment uploads
            attachment_base_url: CDN prefix stripped from attachment URLs to form handles
            session: Optional preconfigured httpx.AsyncClient (testing)
        """
        if not webhook_url:
            raise ValueError("A webhook URL is required")

        self.webhook_url = webhook_url.rstrip('/')
        self.upload_retry = upload_retry
        self.attachment_base_url = attachment_base_url
        self.session = session or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        logger.info(f"Initialized WebhookClient [webhook_url={self.webhook_url}]")

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()

    async def __aenter__(self) -> 'WebhookClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def to_handle(self, url: str) -> str:
        """Strip the CDN prefix from an attachment URL."""
        if self.attachment_base_url and url.startswith(self.attachment_base_url):
            return url[len(self.attachment_base_url):]
        return url

    def to_url(self, handle: str) -> str:
        """Turn a handle back into a dereferenceable URL."""
        if handle.startswith(('http://', 'https://')):
            return handle
        return self.attachment_base_url + handle

    async def _respect_rate_limit(self, response: httpx.Response) -> None:
        """
        Sleep through the rate-limit window when the backend reports no remaining quota.
        """
        remaining = response.headers.get('x-ratelimit-remaining')
        reset_after = response.headers.get('x-ratelimit-reset-after')

        if remaining is None or reset_after is None:
            return

        try:
            exhausted = int(remaining) == 0
            delay = float(reset_after) * RATE_LIMIT_SAFETY_FACTOR
        except ValueError:
            logger.warning(f"Ignoring malformed rate-limit headers: remaining={remaining} reset_after={reset_after}")
            return

        if exhausted:
            logger.info(f"Rate limit reached, sleeping {delay:.2f}s")
            await asyncio.sleep(delay)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send one request and map network failures and error statuses to TransportError.
        """
        try:
            response = await self.session.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} request failed: {type(e).__name__}: {e}") from e

        if response.status_code == 429:
            await self._respect_rate_limit(response)
            raise TransportError(f"{method} rate limited (status=429)")

        if response.status_code >= 400:
            raise TransportError(f"{method} request rejected: status={response.status_code}")

        return response

    async def _upload_once(self, file_name: str, data: bytes) -> str:
        payload = {
            'attachments': [
                {'id': 0, 'filename': file_name}
            ]
        }

        response = await self._request(
            'POST',
            self.webhook_url,
            params={'wait': 'true'},
            data={'payload_json': json.dumps(payload)},
            files={'files[0]': (file_name, data, 'application/octet-stream')},
        )

        try:
            message = Message.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TransportError(f"Unexpected upload response: {e}") from e

        if not message.attachments:
            raise TransportError("Upload response carries no attachment")

        await self._respect_rate_limit(response)
        return self.to_handle(message.attachments[0].url)

    async def upload_file(self, file_name: str, data: bytes) -> str:
        """
        Upload a named blob as a message attachment.

        Args:
            file_name: Attachment file name
            data: Raw bytes to store

        Returns:
            Handle of the uploaded attachment (URL with the CDN prefix stripped)

        Raises:
            TransportError: Only when a bounded upload_retry policy runs out
        """
        handle = await retry_async(
            lambda: self._upload_once(file_name, data),
            self.upload_retry,
            f"Upload of {file_name} ({len(data)} bytes)",
            retry_on=(TransportError,),
        )
        logger.debug(f"Uploaded {file_name} ({len(data)} bytes) -> {handle}")
        return handle

    async def fetch_blob(self, handle_or_url: str) -> bytes:
        """
        Download the bytes behind an attachment handle or URL.

        Raises:
            TransportError: If the download fails
        """
        response = await self._request('GET', self.to_url(handle_or_url))
        return response.content

    def _parse_message(self, response: httpx.Response) -> Message:
        try:
            return Message.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TransportError(f"Unexpected message response: {e}") from e

    async def send_message(self, content: str) -> Message:
        """
        Post a text message.

        Raises:
            TransportError: If the backend rejects the message
        """
        response = await self._request(
            'POST',
            self.webhook_url,
            params={'wait': 'true'},
            json={'content': content},
        )
        message = self._parse_message(response)
        logger.debug(f"Sent message {message.id}")
        return message

    async def get_message(self, message_id: str) -> Optional[Message]:
        """
        Fetch a message previously sent through this webhook.

        Returns:
            The message, or None when the id is unknown to the backend

        Raises:
            TransportError: On any other failure
        """
        try:
            response = await self.session.get(f"{self.webhook_url}/messages/{message_id}")
        except httpx.HTTPError as e:
            raise TransportError(f"GET message {message_id} failed: {type(e).__name__}: {e}") from e

        if response.status_code in (400, 404):
            logger.warning(f"Message {message_id} not found (status={response.status_code})")
            return None

        if response.status_code >= 400:
            raise TransportError(f"GET message {message_id} rejected: status={response.status_code}")

        return self._parse_message(response)

    async def edit_message(self, message_id: str, content: str) -> Message:
        """
        Replace the content of a message sent through this webhook.

        Raises:
            TransportError: If the backend rejects the edit
        """
        response = await self._request(
            'PATCH',
            f"{self.webhook_url}/messages/{message_id}",
            json={'content': content},
        )
        message = self._parse_message(response)
        logger.debug(f"Edited message {message.id}")
        return message
