import logging

import httpx

from pizzeria.app.core.config import Environment, Settings
from pizzeria.app.services.api_gateway import ApiGatewayClient


logger = logging.getLogger(__name__)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared AsyncClient; the caller owns it and must close it."""
    return httpx.AsyncClient(timeout=httpx.Timeout(settings.REQUEST_TIMEOUT_SECONDS))


def build_gateway(client: httpx.AsyncClient, environment: Environment) -> ApiGatewayClient:
    if not environment.is_production:
        logger.info(
            "Environment %s: API URL %s, features %s",
            environment.name,
            environment.api_url,
            environment.features.model_dump(),
        )
    return ApiGatewayClient(client, environment.api_url)
