from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from labelhub.api import artists, labels, releases, search
from labelhub.core.config import settings
from labelhub.services.database import Database
from labelhub.services.storage import HttpStorageService
import traceback
import logging
import uvicorn # For running programmatically
import os # For path manipulation



# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("labelhub")
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One database and one storage client for the lifetime of the process
    app.state.database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    await app.state.database.init()
    app.state.storage = HttpStorageService()
    logger.info("LabelHub started")
    yield
    await app.state.storage.aclose()
    await app.state.database.dispose()
    logger.info("LabelHub stopped")


app = FastAPI(title="LabelHub API", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Anything that is not an HTTPException ends up here
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_detail = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{error_detail}")
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc),
            "path": request.url.path
        }
    )

# Include routes
app.include_router(labels.router, prefix="/api", tags=["Labels"])
app.include_router(artists.router, prefix="/api", tags=["Artists"])
app.include_router(releases.router, prefix="/api", tags=["Releases"])
app.include_router(search.router, prefix="/api", tags=["Search"])


@app.get("/")
async def root():
    return {"message": "Welcome to LabelHub API"}


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, log_level="info")
