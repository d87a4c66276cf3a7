import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from svgforge.application import PipelineCoordinator, configure_pipeline_coordinator
from svgforge.core.config import Settings, load_settings
from svgforge.infrastructure import (
    EndpointKind,
    FalQueueClient,
    GalleryStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    configure_job_submitter,
)
from svgforge.routes import gallery, pipeline


def _build_coordinator(settings: Settings) -> PipelineCoordinator:
    if settings.gallery_root is not None:
        medium = JsonFileKeyValueStore(settings.gallery_root)
    else:
        medium = InMemoryKeyValueStore()
    return PipelineCoordinator(GalleryStore(medium), defaults=settings.generation)


def create_app(coordinator: PipelineCoordinator | None = None) -> FastAPI:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    client: FalQueueClient | None = None
    if settings.fal_key:
        client = FalQueueClient(
            settings.fal_key,
            queue_url=settings.queue_url,
            models={
                EndpointKind.GENERATE: settings.generate_model,
                EndpointKind.VECTORIZE: settings.vectorize_model,
            },
            poll_interval=settings.poll_interval,
            timeout=settings.request_timeout,
            job_deadline=settings.job_deadline,
        )
        configure_job_submitter(client)

    configure_pipeline_coordinator(coordinator or _build_coordinator(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if client is not None:
            await client.aclose()

    app = FastAPI(title="svgforge API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(pipeline.router, prefix="/api")
    app.include_router(gallery.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "svgforge API",
                "docs": "/docs",
                "health": "/api/pipeline",
            }
        )

    return app


app = create_app()
