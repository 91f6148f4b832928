"""
app.py

Responsibility: Builds the FastAPI application and owns the lifespan of the
shared resources (settings, HTTP client, solver).
Does NOT: contain route handlers or challenge logic.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from config import load_settings
from routes.webhook_routes import router as webhook_router
from services.challenge_service import ChallengeSolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Creates the shared HTTP client and an initialised solver on startup and
    closes the client on shutdown.

    Raises:
        ConfigLoadError: If the environment is missing GROUP_NAME.
        KubernetesError: If no cluster configuration can be loaded.
    """
    settings = load_settings()
    async with httpx.AsyncClient() as http_client:
        solver = ChallengeSolver(
            settings.group_name,
            http_client,
            dns_api_url=settings.dns_api_url,
        )
        solver.initialize(settings.kubeconfig_path)

        app.state.solver = solver
        logger.info("Webhook ready: group=%s solver=%s", settings.group_name, solver.name)
        yield


def create_app() -> FastAPI:
    application = FastAPI(title="cert-manager-webhook-vkcloud", lifespan=lifespan)
    application.include_router(webhook_router)
    return application


app = create_app()
