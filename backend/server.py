from contextlib import asynccontextmanager
from typing import Optional, cast
import logging

from fastapi import FastAPI, APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
import uvicorn
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from config import Settings, get_settings
from models import BackingTrackRequest
from auth import get_current_user
from services.backing_track import BackingTrackService
from services.cache import RedisConnection
from services.collaboration import CollaborationNotifier
from services.errors import CacheUnavailableError, MelodyHubError
from services.project_store import ProjectStore
from services.suno_client import PollPolicy, SunoClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")


def get_backing_service(request: Request) -> BackingTrackService:
    return cast(BackingTrackService, request.app.state.backing_service)


def _error_response(error: MelodyHubError, failure_message: str) -> JSONResponse:
    if error.status_code < 500:
        return JSONResponse(
            status_code=error.status_code,
            content={"success": False, "message": error.message},
        )
    logger.error(f"{failure_message}: {error.message}")
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "message": failure_message, "error": error.message},
    )


def _unexpected_response(error: Exception, failure_message: str) -> JSONResponse:
    logger.exception(failure_message)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": failure_message, "error": str(error)},
    )

# ============== Backing Track Generation ==============

@api_router.post("/projects/{project_id}/generate-ai-backing", status_code=201)
async def generate_ai_backing_track(
    project_id: str,
    payload: BackingTrackRequest,
    current_user: dict = Depends(get_current_user),
    service: BackingTrackService = Depends(get_backing_service),
):
    failure_message = "Failed to generate AI backing track"
    try:
        result = await service.generate(project_id, current_user["user_id"], payload)
    except MelodyHubError as e:
        return _error_response(e, failure_message)
    except Exception as e:
        return _unexpected_response(e, failure_message)

    return {
        "success": True,
        "message": "AI backing track generated successfully",
        "data": {
            "timelineItem": result.timeline_item.model_dump(mode="json"),
            "audio_url": result.audio_url,
            "duration": result.duration,
        },
    }


@api_router.get("/projects/{project_id}/backing-track")
async def get_backing_track(
    project_id: str,
    current_user: dict = Depends(get_current_user),
    service: BackingTrackService = Depends(get_backing_service),
):
    failure_message = "Failed to load backing track"
    try:
        view = await service.get_backing_track(project_id, current_user["user_id"])
    except MelodyHubError as e:
        return _error_response(e, failure_message)
    except Exception as e:
        return _unexpected_response(e, failure_message)

    return {
        "success": True,
        "data": {
            "track": view.track.model_dump(mode="json"),
            "timelineItems": [item.model_dump(mode="json") for item in view.timeline_items],
        },
    }

# ============== Health Check ==============

@api_router.get("/")
async def root():
    return {"message": "MelodyHub API", "version": "1.0.0"}


@api_router.get("/health")
async def health_check(request: Request):
    cache: Optional[RedisConnection] = request.app.state.cache
    return {"status": "healthy", "cache": bool(cache and cache.is_open)}


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Validation failed",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProjectStore] = None,
    suno: Optional[SunoClient] = None,
    cache: Optional[RedisConnection] = None,
) -> FastAPI:
    settings = settings or get_settings()

    # MongoDB connection
    mongo_client: Optional[AsyncIOMotorClient] = None
    if store is None:
        mongo_client = AsyncIOMotorClient(settings.mongo_url)
        store = ProjectStore(mongo_client[settings.db_name])

    if suno is None:
        suno = SunoClient(
            api_key=settings.suno_api_key,
            base_url=settings.suno_base_url,
            model=settings.suno_model,
            poll_policy=PollPolicy(
                max_attempts=settings.suno_poll_attempts,
                interval=settings.suno_poll_interval,
            ),
        )

    if cache is None and settings.redis_url:
        cache = RedisConnection(settings.redis_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await store.ensure_indexes()
        except PyMongoError as e:
            logger.error(f"Could not create MongoDB indexes: {e}")

        if cache is not None:
            try:
                await cache.open()
            except CacheUnavailableError as e:
                logger.warning(f"{e}; collaboration events will reconnect on demand")

        yield

        if cache is not None:
            await cache.close()
        if mongo_client is not None:
            mongo_client.close()

    app = FastAPI(title="MelodyHub API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.suno = suno
    app.state.cache = cache
    app.state.backing_service = BackingTrackService(store, suno, CollaborationNotifier(cache))

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.include_router(api_router)

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
