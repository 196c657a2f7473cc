import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from practice_access.api.deps import require_trusted_device
from practice_access.api.routes import auth_router, devices_router, onboarding_router, super_admin_router
from practice_access.config import get_settings
from practice_access.errors import PracticeAccessError
from practice_access.services.device_policy import skip_device_check

settings = get_settings()

logging.basicConfig(level=settings.log_level)

app = FastAPI(title=settings.app_name, dependencies=[Depends(require_trusted_device)])


@app.middleware("http")
async def enforce_https(request: Request, call_next):
    if not settings.allow_insecure_http:
        proto = request.headers.get("x-forwarded-proto") or request.url.scheme
        if proto != "https":
            return JSONResponse(status_code=400, content={"detail": "HTTPS required"})
    return await call_next(request)


@app.exception_handler(PracticeAccessError)
async def practice_access_error_handler(request: Request, exc: PracticeAccessError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(auth_router)
app.include_router(onboarding_router)
app.include_router(devices_router)
app.include_router(super_admin_router)


@app.get("/health")
@skip_device_check
def health() -> dict:
    return {"status": "ok"}
