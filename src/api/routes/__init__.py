"""API route registration."""

from fastapi import FastAPI

from src.api.routes import claims, deals, notifications, system


def include_api_routes(app: FastAPI) -> None:
    """Attach all API routers to the application."""

    app.include_router(system.router)
    app.include_router(deals.router)
    app.include_router(claims.router)
    app.include_router(notifications.router)
