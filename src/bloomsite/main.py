import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .agent.client import GenerationClient
from .agent.orchestrator import GenerationOrchestrator
from .api.routes import router
from .config import PORT, ROOT_PATH, SQLITE_PATH
from .data.sqlite_store import SQLiteStore
from .errors import BloomsiteError, ValidationError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    SQLITE_PATH.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Initializing SQLite store at %s...", SQLITE_PATH)
    sqlite_store = SQLiteStore(str(SQLITE_PATH))
    await sqlite_store.initialize()

    logger.info("Initializing generation client...")
    generation_client = GenerationClient()

    app.state.sqlite_store = sqlite_store
    app.state.generation_client = generation_client
    app.state.orchestrator = GenerationOrchestrator(sqlite_store, generation_client)

    logger.info("Startup complete, ready to serve")
    yield

    # Shutdown
    logger.info("Shutting down...")
    await generation_client.close()
    await sqlite_store.close()


app = FastAPI(title="bloomsite", root_path=ROOT_PATH, lifespan=lifespan)
app.include_router(router)


@app.exception_handler(BloomsiteError)
async def bloomsite_error_handler(request: Request, exc: BloomsiteError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    error = ValidationError("Invalid request body", details=problems)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def run() -> None:
    uvicorn.run("bloomsite.main:app", host="0.0.0.0", port=PORT)
