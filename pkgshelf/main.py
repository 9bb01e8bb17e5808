import logging

from fastapi import FastAPI

from pkgshelf import __version__
from pkgshelf.api.maintenance import router as maintenance_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="pkgshelf maintenance API",
    version=__version__,
    description="Cache, prune and clean passes for a pkgshelf project.",
)

app.include_router(maintenance_router, tags=["maintenance"])


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


if __name__ == "__main__":
    """
    Allow running `python -m pkgshelf.main` to start the Uvicorn development server.
    """
    import uvicorn

    uvicorn.run(
        "pkgshelf.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
