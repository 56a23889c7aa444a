import asyncio
import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from .analysis import AnalysisSimulator, SizeBasedClassifier, delay_ms_for
from .config import Settings
from .db import DetectionLogStore
from .errors import ClientInputError, DetectionError
from .processing import ensure_dirs, intake_images
from .schemas import (
    DetectionData,
    DetectResponse,
    ErrorResponse,
    HealthResponse,
    HistoryResponse,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("crop-disease-api")

UPLOADS_PREFIX = "/uploads"

router = APIRouter(prefix="/api")


def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


@router.post(
    "/detect",
    response_model=DetectResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def detect(request: Request):
    state = request.app.state
    settings: Settings = state.settings

    try:
        # plain text values under "images" are not file parts and do not count
        form = await request.form()
        images = [f for f in form.getlist("images") if isinstance(f, UploadFile)]

        image1, image2 = await intake_images(images, settings.uploads_dir, settings.max_upload_bytes)

        valid1 = state.classifier.is_valid(settings.uploads_dir / image1.stored_filename)
        valid2 = state.classifier.is_valid(settings.uploads_dir / image2.stored_filename)
        result = state.simulator.analyze(valid1, valid2)

        delay_ms = delay_ms_for(result, settings.valid_delay_ms, settings.invalid_delay_ms)
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

        entry = await run_in_threadpool(
            state.store.append, image1.stored_filename, image2.stored_filename, result
        )
    except DetectionError:
        raise
    except HTTPException as e:
        # malformed multipart body
        raise ClientInputError(str(e.detail)) from e
    except Exception as e:
        logger.exception("Detection error")
        raise DetectionError("Internal server error") from e

    logger.info(
        "Detection %d: %s (%s, %s)", entry.id, result.status, image1.stored_filename, image2.stored_filename
    )

    return DetectResponse(
        data=DetectionData(
            id=entry.id,
            images=[
                f"{UPLOADS_PREFIX}/{image1.stored_filename}",
                f"{UPLOADS_PREFIX}/{image2.stored_filename}",
            ],
            result=result,
            timestamp=_now_iso(),
        )
    )


@router.get("/history", response_model=HistoryResponse, responses={500: {"model": ErrorResponse}})
def history(request: Request):
    state = request.app.state
    try:
        entries = state.store.recent(state.settings.history_limit)
    except DetectionError:
        raise
    except Exception as e:
        logger.exception("History error")
        raise DetectionError("Internal server error") from e
    return HistoryResponse(data=entries)


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", timestamp=_now_iso())


def detection_error_handler(request: Request, exc: DetectionError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DetectionLogStore] = None,
    classifier=None,
    simulator=None,
) -> FastAPI:
    """
    Build the API. Store, classifier and simulator default to the production
    implementations; any object with ``is_valid(path)`` / ``analyze(a, b)``
    can be passed instead.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(title="Crop Disease Detection API")
    app.state.settings = settings
    app.state.store = store or DetectionLogStore(settings.db_path)
    app.state.classifier = classifier or SizeBasedClassifier(
        min_bytes=settings.min_valid_bytes,
        max_bytes=settings.max_valid_bytes,
        invalid_chance=settings.invalid_chance,
    )
    app.state.simulator = simulator or AnalysisSimulator()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DetectionError, detection_error_handler)
    app.include_router(router)
    app.mount(UPLOADS_PREFIX, StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")

    @app.on_event("startup")
    def startup() -> None:
        ensure_dirs(settings.uploads_dir)
        app.state.store.init_db()
        logger.info("Database: %s", app.state.store.db_path.resolve())
        logger.info("Uploads: %s", settings.uploads_dir.resolve())

    return app


app = create_app()
