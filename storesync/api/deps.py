"""
Request dependencies

Services are created once per application in main.create_app() and kept on
app.state; routes receive them through these FastAPI dependencies.
"""
from fastapi import Request

from storesync.services.ingestion_service import IngestionService
from storesync.services.webhook_service import WebhookService


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion


def get_webhook_service(request: Request) -> WebhookService:
    return request.app.state.webhooks
