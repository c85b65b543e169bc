"""
Shopify webhook endpoints

The raw request body is read before any parsing so the HMAC is computed over
exactly the bytes Shopify signed.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from storesync.api.deps import get_webhook_service
from storesync.exceptions import TenantNotFoundError, UnknownTopicError, WebhookPayloadError, WebhookSignatureError
from storesync.services.webhook_service import WebhookService
from storesync.utils.logger import log

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/{resource}/{action}")
async def receive_webhook(
    resource: str,
    action: str,
    request: Request,
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    x_shopify_shop_domain: Optional[str] = Header(None),
    x_shopify_webhook_id: Optional[str] = Header(None),
    webhooks: WebhookService = Depends(get_webhook_service),
):
    topic = f"{resource}/{action}"
    raw_body = await request.body()

    try:
        outcome = await webhooks.receive(
            x_shopify_shop_domain,
            topic,
            raw_body,
            x_shopify_hmac_sha256,
            event_id=x_shopify_webhook_id,
        )
        return outcome.to_dict()

    except WebhookSignatureError:
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})
    except TenantNotFoundError:
        return JSONResponse(status_code=404, content={"error": "Tenant not found"})
    except UnknownTopicError as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
    except WebhookPayloadError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        log.error(f"{topic} webhook error: {str(e)}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
