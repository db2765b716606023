import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from chronicle.config import get_settings
from chronicle.api.routes import changelog, jira_webhook, public_changelog, regenerate, slack_templates
from chronicle.services.changelog_pipeline import ChangelogPipeline

settings = get_settings()

# Configure application logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Set log level for app modules
logger = logging.getLogger("chronicle")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)


def create_app(pipeline: Optional[ChangelogPipeline] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        pipeline: Pre-built pipeline (tests); built from settings at startup otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "pipeline", None) is None:
            from chronicle.services.container import build_pipeline

            app.state.pipeline = build_pipeline(settings)
            logger.info(f"{settings.app_name} pipeline ready")
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Jira to customer-facing changelog pipeline with Slack approvals",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline

    # Include routers
    app.include_router(jira_webhook.router, prefix="/api/jira-webhook", tags=["Jira Webhook"])
    app.include_router(changelog.router, prefix="/api/changelog", tags=["Changelog Approval"])
    app.include_router(regenerate.router, prefix="/api/regenerate-changelog", tags=["Regeneration"])
    app.include_router(slack_templates.router, prefix="/api/slack/templates", tags=["Slack Templates"])
    app.include_router(public_changelog.router, prefix="/api/public-changelog", tags=["Public Changelog"])

    @app.get("/")
    async def root():
        return {
            "message": f"Welcome to {settings.app_name} - Jira to Changelog Pipeline",
            "version": "0.1.0",
            "endpoints": {
                "jira_webhook": "/api/jira-webhook",
                "changelog": "/api/changelog",
                "regenerate": "/api/regenerate-changelog",
                "slack_templates": "/api/slack/templates",
                "public_changelog": "/api/public-changelog",
                "health": "/health",
                "docs": "/docs",
                "redoc": "/redoc",
            },
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": settings.app_name}

    return app


app = create_app()
