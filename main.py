"""
FastAPI entry point for the Gherkin Jira Hierarchy Agent.
"""
import os
import logging
from dotenv import load_dotenv

# Load .env before settings are read
env_path = os.path.join(os.path.dirname(__file__), '.env')
try:
    load_dotenv(env_path)
except (PermissionError, OSError):
    pass

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.gherkin_jira_agent.config import settings
from src.gherkin_jira_agent.version import __version__
from api.gherkin import router as gherkin_router
from api.hierarchy import router as hierarchy_router
from api.meta import router as meta_router

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.api_title,
    description="Maps Gherkin features and scenarios onto a Jira issue hierarchy and creates it",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(gherkin_router)
app.include_router(hierarchy_router)
app.include_router(meta_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": f"{settings.api_title} API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
