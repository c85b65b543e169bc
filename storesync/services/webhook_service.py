"""
Webhook Service

Handles Shopify push notifications. Each delivery is:
    1. Authenticated: HMAC-SHA256 of the raw body, base64, constant-time compare
    2. Routed to its tenant by shop domain
    3. Claimed by inserting a webhook receipt keyed by (tenant, topic, event id)
    4. Applied (record upsert or custom event) in the same transaction as the claim

A receipt that already exists means the event was processed before; the
delivery is acknowledged as a duplicate and nothing else is written. Any
other failure rolls back the claim too, so Shopify's retry is processed
from scratch.
"""
import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storesync.config import get_settings
from storesync.exceptions import (
    DuplicateWebhookError,
    InvalidShopDomainError,
    RecordValidationError,
    TenantNotFoundError,
    UnknownTopicError,
    WebhookPayloadError,
    WebhookSignatureError,
)
from storesync.models.base import Database
from storesync.models.shopify import CustomEvent
from storesync.models.sync import WebhookReceipt
from storesync.models.tenant import Tenant
from storesync.schemas.shopify import ENTITY_CUSTOMERS, ENTITY_PRODUCTS, ENTITY_ORDERS, parse_record
from storesync.services.upsert_writer import UpsertWriter
from storesync.utils.helpers import normalize_shop_domain, utcnow
from storesync.utils.logger import log

# Topics that carry a full resource record
RECORD_TOPICS = {
    "customers/create": ENTITY_CUSTOMERS,
    "customers/update": ENTITY_CUSTOMERS,
    "products/create": ENTITY_PRODUCTS,
    "products/update": ENTITY_PRODUCTS,
    "orders/create": ENTITY_ORDERS,
    "orders/updated": ENTITY_ORDERS,
}


@dataclass(frozen=True)
class EventTopic:
    """Topic stored as an append-only custom event"""
    event_type: str
    id_field: str  # payload field identifying the event
    cart_token_field: str


EVENT_TOPICS = {
    "carts/abandoned": EventTopic("cart_abandoned", id_field="token", cart_token_field="token"),
    "checkouts/create": EventTopic("checkout_started", id_field="id", cart_token_field="cart_token"),
}

SUPPORTED_TOPICS = tuple(RECORD_TOPICS) + tuple(EVENT_TOPICS)


@dataclass
class WebhookOutcome:
    topic: str
    duplicate: bool
    tenant_id: int
    external_id: Optional[str] = None

    def to_dict(self) -> dict:
        if self.duplicate:
            return {"success": True, "duplicate": True}
        return {"success": True}


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw request body, as Shopify sends it"""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().encode("utf-8", "ignore"))


def _decode_payload(raw_body: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        raise WebhookPayloadError(f"Webhook body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise WebhookPayloadError("Webhook body must be a JSON object")
    return payload


def derive_event_id(topic: str, payload: Dict[str, Any]) -> str:
    """
    Event identifier used for deduplication when Shopify's webhook id header is absent

    Record topics use "<id>:<updated_at>" so a later update of the same
    resource is a new event; carts use their token and checkouts their id.

    Raises:
        WebhookPayloadError: Nothing usable in the payload
    """
    if topic in RECORD_TOPICS:
        resource_id = payload.get("id")
        if resource_id in (None, ""):
            raise WebhookPayloadError(f"{topic} payload has no id")
        updated_at = payload.get("updated_at") or payload.get("created_at")
        return f"{resource_id}:{updated_at}" if updated_at else str(resource_id)

    event_topic = EVENT_TOPICS.get(topic)
    if event_topic is None:
        raise UnknownTopicError(topic)

    value = payload.get(event_topic.id_field)
    if value in (None, ""):
        raise WebhookPayloadError(f"{topic} payload has no {event_topic.id_field}")
    return str(value)


class WebhookService:
    """Authenticates, deduplicates and applies inbound webhooks"""

    def __init__(
        self,
        database: Database,
        webhook_secret: Optional[str] = None,
        writer: Optional[UpsertWriter] = None,
    ):
        self.database = database
        self.webhook_secret = webhook_secret or get_settings().webhook_secret
        self.writer = writer or UpsertWriter()

    def _find_tenant_id(self, session: Session, shop_domain: str) -> Optional[int]:
        return session.execute(
            select(Tenant.id).where(Tenant.shop_domain == shop_domain)
        ).scalar_one_or_none()

    async def receive(
        self,
        shop_domain: Optional[str],
        topic: str,
        raw_body: bytes,
        signature: Optional[str],
        event_id: Optional[str] = None,
    ) -> WebhookOutcome:
        """
        Process one webhook delivery

        Raises:
            UnknownTopicError: Topic is not handled
            WebhookSignatureError: Signature missing or wrong (nothing is recorded)
            TenantNotFoundError: No tenant for the shop domain
            WebhookPayloadError: Body unusable
        """
        if topic not in SUPPORTED_TOPICS:
            raise UnknownTopicError(topic)

        if not verify_signature(raw_body, signature, self.webhook_secret):
            log.warning(f"Rejected {topic} webhook from {shop_domain}: bad signature")
            raise WebhookSignatureError()

        try:
            domain = normalize_shop_domain(shop_domain)
        except InvalidShopDomainError:
            raise TenantNotFoundError(shop_domain)

        tenant_id = await self.database.run_async(self._find_tenant_id, domain)
        if tenant_id is None:
            raise TenantNotFoundError(domain)

        payload = _decode_payload(raw_body)
        external_id = event_id.strip() if event_id and event_id.strip() else derive_event_id(topic, payload)

        record = None
        entity_type = RECORD_TOPICS.get(topic)
        if entity_type is not None:
            try:
                record = parse_record(entity_type, payload)
            except RecordValidationError as e:
                raise WebhookPayloadError(str(e)) from e

        try:
            await self.database.run_async(self._apply, tenant_id, topic, external_id, payload, record)
        except DuplicateWebhookError:
            log.info(f"Duplicate {topic} webhook for tenant {tenant_id} (event {external_id}), skipping")
            return WebhookOutcome(topic=topic, duplicate=True, tenant_id=tenant_id, external_id=external_id)

        log.info(f"Processed {topic} webhook for tenant {tenant_id} (event {external_id})")
        return WebhookOutcome(topic=topic, duplicate=False, tenant_id=tenant_id, external_id=external_id)

    def _claim(self, session: Session, tenant_id: int, topic: str, external_id: str):
        session.add(WebhookReceipt(
            tenant_id=tenant_id,
            topic=topic,
            external_id=external_id,
            received_at=utcnow(),
        ))
        try:
            session.flush()
        except IntegrityError as e:
            raise DuplicateWebhookError(topic, external_id) from e

    def _apply(self, session: Session, tenant_id: int, topic: str, external_id: str, payload: Dict[str, Any], record):
        self._claim(session, tenant_id, topic, external_id)

        entity_type = RECORD_TOPICS.get(topic)
        if entity_type is not None:
            self.writer.write_record(session, tenant_id, entity_type, record)
            return

        self._record_event(session, tenant_id, EVENT_TOPICS[topic], payload)

    def _record_event(self, session: Session, tenant_id: int, event_topic: EventTopic, payload: Dict[str, Any]):
        customer = payload.get("customer")
        customer_external_id = customer.get("id") if isinstance(customer, dict) else None

        cart_token = payload.get(event_topic.cart_token_field)

        session.add(CustomEvent(
            tenant_id=tenant_id,
            customer_id=self.writer.resolve_customer_id(session, tenant_id, customer_external_id),
            event_type=event_topic.event_type,
            event_data=payload,
            cart_token=str(cart_token) if cart_token is not None else None,
            created_at=utcnow(),
        ))
