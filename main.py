from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import ceksenet.models  # ensure models are registered
from ceksenet.core.config import settings
from ceksenet.core.exceptions import ConflictError, NotFoundError, ValidationError
from ceksenet.core.logging import get_logger, setup_logging
from ceksenet.utils.database import engine, Base

from ceksenet.routers import (
    bankalar_router,
    cariler_router,
    cron_router,
    dashboard_router,
    evraklar_router,
    import_router,
    krediler_router,
    raporlar_router,
    settings_router,
)

setup_logging(settings.log_level, settings.log_format)
logger = get_logger("ceksenet.api")

app = FastAPI(title="Çek Senet Takip API", version="1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(dashboard_router.router)
app.include_router(evraklar_router.router)
app.include_router(cariler_router.router)
app.include_router(bankalar_router.router)
app.include_router(import_router.router)
app.include_router(krediler_router.router)
app.include_router(raporlar_router.router)
app.include_router(settings_router.router)
app.include_router(cron_router.router)


# =================================================
# Domain errors -> HTTP
# =================================================
@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Sunucu hatası oluştu"})


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.app_env)


@app.get("/")
def root():
    return {"message": "Çek Senet Takip API çalışıyor"}


@app.get("/healthz")
def healthz():
    return {"status": "ok"}
