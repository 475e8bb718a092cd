from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from dataroom.api.access import router as access_router
from dataroom.api.admin import router as admin_router
from dataroom.api.documents import router as documents_router
from dataroom.api.invites import router as invites_router
from dataroom.api.notifications import router as notifications_router
from dataroom.config import settings
from dataroom.errors import register_error_handlers
from dataroom.logging import configure_logging
from dataroom.observability import ObservabilityMiddleware

configure_logging()

app = FastAPI(title=f"{settings.brand_name} API")
app.add_middleware(ObservabilityMiddleware)
register_error_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(documents_router)
_include_api_router(access_router)
_include_api_router(invites_router)
_include_api_router(admin_router)
_include_api_router(notifications_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
