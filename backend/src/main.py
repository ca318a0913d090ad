from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from diaries.interfaces.routes import router as diaries_router
from shared.config import settings
from shared.dependencies import close_diary_store, get_diary_store
from shared.exceptions import (
    AppError,
    BackingMediumUnavailableError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from shared.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    await get_diary_store().open()
    logger.info("Diary storage backend: %s", settings.STORAGE_BACKEND)
    yield
    await close_diary_store()


app = FastAPI(
    title="Couple Diary",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(diaries_router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictError)
async def conflict_handler(request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(BackingMediumUnavailableError)
async def unavailable_handler(request, exc: BackingMediumUnavailableError):
    logger.error("Storage failure: %s", exc.message)
    return JSONResponse(
        status_code=503, content={"detail": "Storage is temporarily unavailable"}
    )


@app.exception_handler(AppError)
async def app_error_handler(request, exc: AppError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.get("/health")
async def health_check():
    return {"status": "ok"}
