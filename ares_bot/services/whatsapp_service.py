"""
Outbound WhatsApp delivery.

The WhatsApp session (QR pairing, reconnection, retries) lives in the
gateway process. This module only hands it messages over HTTP through an
injected ``ChatTransport``, so everything upstream can be exercised with a
fake transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from ares_bot.utils.error_handling import DeliveryError
from ares_bot.utils.logging_config import get_logger
from ares_bot.utils.validators import mask_phone

logger = get_logger(__name__)


@dataclass(frozen=True)
class OutboundPayload:
    """A text message, optionally carrying a document fetched by URL."""

    text: str
    document_url: Optional[str] = None
    filename: Optional[str] = None
    mimetype: str = "application/pdf"

    def to_json(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.text}
        if self.document_url:
            body["document"] = {
                "url": self.document_url,
                "filename": self.filename or "documento.pdf",
                "mimetype": self.mimetype,
            }
        return body


@runtime_checkable
class ChatTransport(Protocol):
    """Anything that can deliver a payload to a chat id or phone number."""

    def send(self, target: str, payload: OutboundPayload) -> Optional[str]:
        """Deliver or raise DeliveryError. May return the transport's message id."""
        ...


class GatewayTransport:
    """HTTP client for the WhatsApp gateway's ``POST /send`` endpoint."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers=headers,
            transport=http_transport,
        )

    def send(self, target: str, payload: OutboundPayload) -> Optional[str]:
        if not target:
            raise DeliveryError("Message target is empty")
        body = {"to": target, **payload.to_json()}
        try:
            response = self.client.post("/send", json=body)
        except httpx.TimeoutException as exc:
            raise DeliveryError("Timeout sending message to gateway") from exc
        except httpx.RequestError as exc:
            raise DeliveryError(f"Gateway unreachable: {exc}") from exc

        if not response.is_success:
            raise DeliveryError(
                f"Gateway rejected message (status={response.status_code}): {response.text[:200]}"
            )
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            return None
        return data.get("messageId") or data.get("id")

    def close(self) -> None:
        self.client.close()


class Notifier:
    """
    Route rendered messages to the group, the technician or the manager.

    Delivery failures are logged and reported as False; a broken gateway
    must not undo a ticket that is already stored.
    """

    def __init__(
        self,
        transport: ChatTransport,
        group_id: str,
        technician_id: str,
        manager_id: Optional[str] = None,
    ) -> None:
        self.transport = transport
        self.group_id = group_id
        self.technician_id = technician_id
        self.manager_id = manager_id

    def _deliver(self, target: Optional[str], payload: OutboundPayload, audience: str) -> bool:
        if not target:
            logger.warning("No chat configured for audience; message dropped", extra={"audience": audience})
            return False
        try:
            message_id = self.transport.send(target, payload)
        except DeliveryError as exc:
            logger.error(
                "Message delivery failed",
                extra={"audience": audience, "target": mask_phone(target), "error": str(exc)},
            )
            return False
        logger.info("Message delivered", extra={"audience": audience, "message_id": message_id})
        return True

    def to_group(self, text: str) -> bool:
        return self._deliver(self.group_id, OutboundPayload(text=text), "group")

    def to_technician(self, text: str) -> bool:
        return self._deliver(self.technician_id, OutboundPayload(text=text), "technician")

    def to_manager(self, text: str) -> bool:
        return self._deliver(self.manager_id, OutboundPayload(text=text), "manager")

    def to_client(self, phone: str, payload: OutboundPayload) -> bool:
        return self._deliver(phone, payload, "client")
