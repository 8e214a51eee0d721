"""Push delivery channel - best-effort device notifications via the Expo push API."""

import logging

import httpx

from peertutor.config import settings

logger = logging.getLogger(__name__)


class PushChannel:
    """Interface for push delivery. Implementations must never raise."""

    async def send(self, token: str, title: str, body: str, data: dict) -> bool:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class ExpoPushChannel(PushChannel):
    def __init__(
        self,
        url: str = settings.EXPO_PUSH_URL,
        access_token: str = settings.EXPO_ACCESS_TOKEN,
        timeout: float = settings.PUSH_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def send(self, token: str, title: str, body: str, data: dict) -> bool:
        """Send one push message. Failures are logged and reported as False."""
        message = {
            "to": token,
            "title": title,
            "body": body,
            "data": data,
            "sound": "default",
            "priority": "high",
            "badge": 1,
        }
        try:
            resp = await self._client.post(self.url, json=message)
            resp.raise_for_status()
            ticket = resp.json().get("data", {})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Push delivery failed for token %s...: %s", token[:12], e)
            return False

        if isinstance(ticket, dict) and ticket.get("status") == "error":
            logger.warning("Push rejected for token %s...: %s", token[:12], ticket.get("message"))
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()
