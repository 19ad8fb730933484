import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.api.routes import router as storefront_router
from storefront.api.routes.helpers import shape_error, status_for_error
from storefront.core.config import settings
from storefront.core.errors import StorefrontError
from storefront.core.pricing import PricingContext, build_context

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

ContextFactory = Callable[[], PricingContext]


def create_app(context_factory: Optional[ContextFactory] = None, start_refresher: bool = True) -> FastAPI:
    factory = context_factory or build_context

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Builds the pricing context and owns the price refresher's lifetime."""
        context = factory()
        app.state.context = context
        await context.initialize()
        if start_refresher:
            context.start_background_refresh()
        logging.info("Storefront engine started.")
        try:
            yield
        finally:
            await context.shutdown()
            logging.info("Storefront engine stopped.")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Location-aware pricing and cart consistency for the SNF storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        logging.warning(f"{request.method} {request.url.path} failed: {exc.type.value} {exc}")
        payload = shape_error(exc.error)
        return JSONResponse(
            status_code=status_for_error(exc.error),
            content={"error": payload.model_dump(mode="json")},
        )

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(storefront_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
