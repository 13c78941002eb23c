"""FastAPI application factory."""

import uvicorn
from fastapi import FastAPI
from fastapi_pagination import add_pagination

import replydesk.models  # noqa: F401
from replydesk.config import get_settings
from replydesk.db import Base, engine
from replydesk.infra.logging_config import LoggingConfig, get_logger
from replydesk.routers import dev, follow_ups_router, knowledge_router, system, webhooks

logger = get_logger("main")


def create_app(testing: bool = False) -> FastAPI:
    LoggingConfig()
    settings = get_settings()

    app = FastAPI(
        title="Replydesk API",
        description="Messaging automation for WhatsApp and Instagram",
        version="0.1.0",
    )

    app.include_router(webhooks.router)
    app.include_router(knowledge_router.router)
    app.include_router(follow_ups_router.router)
    app.include_router(dev.router)
    app.include_router(system.router)
    add_pagination(app)

    # Schema migrations are managed outside the app; SQLite dev databases are
    # created on startup.
    if not testing and settings.database_url and settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    logger.info("Replydesk API created (environment=%s)", settings.environment)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("replydesk.main:app", host="0.0.0.0", port=get_settings().port)
