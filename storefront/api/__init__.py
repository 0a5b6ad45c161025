from fastapi import FastAPI

from storefront.api.routers import carts, health, orders


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront", version="1.0.0")

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app
