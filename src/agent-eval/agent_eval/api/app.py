"""FastAPI application factory for the run webhook receiver."""

from fastapi import FastAPI

from agent_eval.api.webhooks import router as webhooks_router
from agent_eval.run.application.service import RunService


def create_app(service: RunService) -> FastAPI:
    app = FastAPI(title="agent-eval")
    app.state.run_service = service
    app.include_router(webhooks_router)
    return app
