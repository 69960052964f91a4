import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from app.api.routes import api_router
from app.core.config import Settings, settings
from app.services.recommendation_resolver import RecommendationResolver
from app.services.weather_client import WeatherClient

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    resolver: RecommendationResolver | None = None,
    weather_client: WeatherClient | None = None,
) -> FastAPI:
    logging.basicConfig(level=logging.INFO)
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.resolver.close()
        app.state.weather_client.close()

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    app.state.resolver = resolver or RecommendationResolver.from_settings(config)
    app.state.weather_client = weather_client or WeatherClient(config)
    if app.state.resolver.advisory is None:
        logger.info("Gemini API key not configured, serving rule-based recommendations only")

    # credentials cannot be combined with a wildcard origin
    cors_origins = config.cors_origins
    allow_creds = cors_origins != "*"
    if cors_origins == "*":
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=allow_creds,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def catch_unhandled(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error serving %s", request.url.path)
            return JSONResponse(status_code=500, content={"detail": "internal_error"})

    app.include_router(api_router)
    return app


app = create_app()
