"""
Exception hierarchy for the ingestion engine.

Precondition errors are raised before anything is attempted (no sync log is
written). Source and record errors abort the current run. Webhook errors are
raised before the data model is touched.
"""
from typing import Optional


class StoreSyncError(Exception):
    """Base class for all engine errors"""


# Preconditions

class PreconditionError(StoreSyncError):
    """Nothing was attempted"""


class TenantNotFoundError(PreconditionError):
    def __init__(self, identifier):
        super().__init__(f"Tenant not found: {identifier}")
        self.identifier = identifier


class MissingCredentialError(PreconditionError):
    def __init__(self, tenant_id):
        super().__init__(f"Tenant {tenant_id} is not connected to Shopify yet (missing access token)")
        self.tenant_id = tenant_id


class InvalidShopDomainError(PreconditionError):
    def __init__(self, shop_domain):
        super().__init__(f"Malformed shop domain: {shop_domain!r}")
        self.shop_domain = shop_domain


class CredentialError(PreconditionError):
    """Stored credential could not be decrypted"""


class UnsupportedEntityError(PreconditionError, ValueError):
    def __init__(self, entity_type):
        super().__init__(f"Unsupported entity type: {entity_type!r}")
        self.entity_type = entity_type


# Source

class SourceError(StoreSyncError):
    """Network failure or unusable response from the external API"""


class SourceRateLimitError(SourceError):
    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class SourceResponseError(SourceError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# Writes

class RecordValidationError(StoreSyncError):
    """An external record failed schema validation or numeric parsing"""

    def __init__(self, entity_type: str, external_id, detail: str):
        super().__init__(f"Invalid {entity_type} record {external_id}: {detail}")
        self.entity_type = entity_type
        self.external_id = external_id
        self.detail = detail


class SyncRunError(StoreSyncError):
    """A sync run was attempted and failed; partial work is reflected in the sync log"""

    def __init__(self, entity_type: str, processed: int, log_id: Optional[int], message: str):
        super().__init__(f"{entity_type} sync failed after {processed} records: {message}")
        self.entity_type = entity_type
        self.processed = processed
        self.log_id = log_id
        self.message = message


# Webhooks

class WebhookError(StoreSyncError):
    """Base class for inbound webhook rejections"""


class WebhookSignatureError(WebhookError):
    def __init__(self):
        super().__init__("Webhook signature verification failed")


class WebhookPayloadError(WebhookError):
    """Body is not valid JSON or carries no usable event identifier"""


class UnknownTopicError(WebhookError):
    def __init__(self, topic: str):
        super().__init__(f"Unsupported webhook topic: {topic}")
        self.topic = topic


class DuplicateWebhookError(WebhookError):
    """Receipt already claimed for (tenant, topic, event id)"""

    def __init__(self, topic: str, external_id: str):
        super().__init__(f"Duplicate delivery for {topic} event {external_id}")
        self.topic = topic
        self.external_id = external_id
