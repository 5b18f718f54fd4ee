"""
MedScan - FastAPI Backend

Medicine photo identification and multi-source information API.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from the backend directory
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from medscan.config.settings import AppConfig
from medscan.cross_cutting.logging import setup_logging
from medscan.domain.entities.analysis_response import DEFAULT_DISCLAIMER
from medscan.router import router as medicine_router, close_service


config = AppConfig.from_env()
setup_logging(config.logging.level, config.logging.log_file, config.logging.format)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Shutdown: close the source adapters' HTTP sessions
    close_service()


app = FastAPI(
    title="MedScan API",
    description="Medicine photo identification with multi-source aggregation",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
# NOTE: restrict allow_origins in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(medicine_router)


@app.get("/")
def root():
    return {
        "name": "MedScan API",
        "version": "1.0.0",
        "endpoints": [
            "/api/medicine/verify-name",
            "/api/medicine/verify-multi-name",
            "/api/medicine/comprehensive-details",
            "/api/medicine/analyze",
            "/api/medicine/search",
            "/api/medicine/ndc/{ndc}",
            "/api/medicine/lookup",
            "/api/medicine/health",
        ],
        "disclaimer": DEFAULT_DISCLAIMER,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
