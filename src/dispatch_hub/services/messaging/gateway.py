"""HTTP client for a WAHA-compatible WhatsApp gateway."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ...config import settings
from ...errors import RelayError
from .relay import MessagingRelay, RelayEventKind, format_address

logger = logging.getLogger(__name__)

# Responses the gateway returns when a session is already in the requested state.
_ALREADY_DONE = (409, 422)


class GatewayRelay(MessagingRelay):
    """Messaging relay driving one gateway session over HTTP.

    Session transitions are pushed by the gateway to the webhook route and
    fed into :meth:`handle_webhook`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        repairing_delay_seconds: float | None = None,
        country_code: str | None = None,
        address_suffix: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(session or settings.relay_session)
        self.base_url = base_url or settings.relay_base_url
        if not self.base_url:
            raise ValueError("Messaging relay base URL is not configured.")
        self.max_retries = max_retries if max_retries is not None else settings.relay_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.relay_backoff_seconds
        self.repairing_delay_seconds = (
            repairing_delay_seconds if repairing_delay_seconds is not None else settings.relay_repairing_delay_seconds
        )
        self.country_code = country_code or settings.relay_country_code
        self.address_suffix = address_suffix or settings.relay_address_suffix

        api_key = api_key or settings.relay_api_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout or settings.relay_timeout_seconds, connect=10.0),
            headers={"X-Api-Key": api_key} if api_key else None,
            transport=transport,
        )

    async def initialize(self) -> None:
        logger.info(
            f"Starting relay session '{self.session}' "
            f"(currently {'authenticated' if self._authenticated else 'not authenticated'})"
        )
        await self._request("POST", "/api/sessions/start", json={"name": self.session}, accept=_ALREADY_DONE)
        status = await self.refresh_status()
        logger.info(f"Relay session '{self.session}' started with status {status}")

    async def refresh_status(self) -> Optional[str]:
        response = await self._request("GET", f"/api/sessions/{self.session}")
        status = response.json().get("status")
        await self._apply_status(status)
        return status

    async def force_re_pairing(self) -> None:
        logger.info(f"Logging out relay session '{self.session}' to issue a new QR code")
        await self._request("POST", "/api/sessions/logout", json={"name": self.session}, accept=(404, *_ALREADY_DONE))
        self._authenticated = False

        await asyncio.sleep(self.repairing_delay_seconds)

        logger.info(f"Restarting relay session '{self.session}'")
        await self._request("POST", "/api/sessions/start", json={"name": self.session}, accept=_ALREADY_DONE)

    async def send(self, address: str, text: str) -> Optional[dict[str, Any]]:
        chat_id = format_address(address, self.country_code, self.address_suffix)
        if chat_id is None:
            logger.warning(f"Cannot send message to {address}: the first two characters are not digits")
            return None
        if not self._authenticated:
            logger.error("Relay session is not authenticated, message not sent")
            return None

        logger.info(f"Sending message to {chat_id}")
        response = await self._request(
            "POST", "/api/sendText", json={"session": self.session, "chatId": chat_id, "text": text}
        )
        logger.info(f"Message sent to {chat_id}")
        return response.json()

    async def handle_webhook(self, body: dict[str, Any]) -> None:
        session = body.get("session")
        if session and session != self.session:
            logger.debug(f"Ignoring webhook for session '{session}'")
            return
        if body.get("event") != "session.status":
            logger.debug(f"Ignoring gateway event {body.get('event')!r}")
            return
        payload = body.get("payload") or {}
        await self._apply_status(payload.get("status"), payload)

    async def close(self) -> None:
        await self._client.aclose()

    async def _apply_status(self, status: Optional[str], payload: dict[str, Any] | None = None) -> None:
        if status == "WORKING":
            if not self._authenticated:
                logger.info(f"Relay session '{self.session}' is ready")
                await self.publish(RelayEventKind.READY)
        elif status == "SCAN_QR_CODE":
            self._authenticated = False
            logger.info(f"Relay session '{self.session}' is waiting for a QR scan")
            await self.publish(RelayEventKind.QR, {"qr": await self._fetch_qr()})
        elif status == "STOPPED":
            logger.warning(f"Relay session '{self.session}' disconnected")
            await self.publish(RelayEventKind.DISCONNECTED, {"reason": status})
        elif status == "FAILED":
            message = (payload or {}).get("message") or "Sessão do WhatsApp falhou"
            logger.error(f"Relay session '{self.session}' authentication failed: {message}")
            await self.publish(RelayEventKind.AUTH_FAILURE, {"error": message})
        else:
            logger.info(f"Relay session '{self.session}' status: {status}")

    async def _fetch_qr(self) -> Optional[str]:
        response = await self._request("GET", f"/api/{self.session}/auth/qr", params={"format": "raw"})
        return response.json().get("value")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        accept: tuple[int, ...] = (),
    ) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, json=json, params=params)
                if response.status_code in accept:
                    return response
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code < 500:
                    raise RelayError(f"Gateway respondeu {status_code} para {method} {path}") from e
                attempt += 1
                if attempt > self.max_retries:
                    raise RelayError(f"Gateway indisponível ({status_code}) para {method} {path}") from e
                await asyncio.sleep(self.backoff_seconds * attempt)
            except httpx.TransportError as e:
                # Timeouts, DNS failures, refused connections
                attempt += 1
                if attempt > self.max_retries:
                    raise RelayError(f"Falha ao contatar o gateway em {self.base_url}: {e}") from e
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    f"Gateway request failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}"
                )
                await asyncio.sleep(wait_time)
