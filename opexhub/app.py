import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from opexhub.application import configure_api_client
from opexhub.infrastructure import OpexApiClient
from opexhub.routes import auth, initiative_form, initiatives, monitoring, reports, timeline, workflow


def create_app() -> FastAPI:
    app = FastAPI(title="OpEx Hub Portal", version="0.1.0")

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    base_url = os.getenv("OPEX_API_BASE_URL") or "http://localhost:8080"
    timeout = float(os.getenv("OPEX_API_TIMEOUT") or 30)
    configure_api_client(OpexApiClient(base_url, timeout=timeout))

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/api")
    app.include_router(initiatives.router, prefix="/api")
    app.include_router(initiative_form.router, prefix="/api")
    app.include_router(workflow.router, prefix="/api")
    app.include_router(monitoring.router, prefix="/api")
    app.include_router(timeline.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "OpEx Hub Portal",
                "docs": "/docs",
                "api": base_url,
            }
        )

    return app


app = create_app()
