from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from promptbridge.api.integrations import router as integrations_router
from promptbridge.api.notion import router as notion_router
from promptbridge.api.templates import router as templates_router
from promptbridge.core.config import settings
from promptbridge.core.logging_config import configure_logging
from promptbridge.db.session import engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup: verify the database is reachable
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
    yield
    # Shutdown: Close database connections
    await engine.dispose()


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="PromptBridge",
        description=(
            "Links Notion workspaces through OAuth, stores encrypted credentials, and "
            "exports prompt templates as Notion pages or database entries."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Notion OAuth and connection management
    app.include_router(notion_router, prefix="/api")
    # Template export
    app.include_router(templates_router, prefix="/api")
    # Linked integrations
    app.include_router(integrations_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
