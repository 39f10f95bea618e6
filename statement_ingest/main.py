import logging

from fastapi import FastAPI
from .config import settings
from .database import create_tables
from .routers import ingestion

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = settings.LOG_LEVEL):
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


configure_logging()

# Create FastAPI app
app = FastAPI(title=settings.PROJECT_NAME)

# Create lifecycle directories and database tables on startup
@app.on_event("startup")
async def startup_event():
    settings.ensure_directories()
    create_tables()

# Include API routers
app.include_router(ingestion.router, prefix=settings.API_V1_STR, tags=["ingestion"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
