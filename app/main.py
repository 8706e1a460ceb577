import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes import payments as payments_router
from app.api.routes import review as review_router
from app.api.routes import webhooks as webhooks_router
from app.clients.processor import ProcessorClient
from app.core.background import PeriodicTask
from app.core.config import get_settings
from app.core.errors import AppError, ValidationError
from app.core.logging import setup_logging
from app.db.base import close_db, get_session_factory, init_db
from app.services.mailer import build_mailer
from app.services.sweeper import PendingSweeper

logger = structlog.get_logger(__name__)

app = FastAPI(title="Talento Local API")


@app.on_event("startup")
async def startup():
    settings = get_settings()
    setup_logging(settings)
    await init_db()

    app.state.processor = ProcessorClient(settings)
    app.state.mailer = build_mailer(settings)

    app.state.sweep_task = None
    if settings.sweep_interval_seconds > 0:
        sweeper = PendingSweeper(
            get_session_factory(),
            app.state.processor,
            app.state.mailer,
            min_age_seconds=settings.sweep_min_age_seconds,
            batch_size=settings.sweep_batch_size,
            app_name=settings.app_name,
        )
        app.state.sweep_task = PeriodicTask("pending-sweep", settings.sweep_interval_seconds, sweeper.run_once)
        app.state.sweep_task.start()


@app.on_event("shutdown")
async def shutdown():
    if app.state.sweep_task is not None:
        await app.state.sweep_task.stop()
    await app.state.processor.aclose()
    await close_db()


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if not isinstance(exc, ValidationError):
        logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request data", "code": "validation_error", "details": {"errors": errors}},
    )


@app.get("/")
def root():
    return {"message": "Talento Local API running"}


app.include_router(payments_router.router)
app.include_router(webhooks_router.router)
app.include_router(review_router.router)
