from fastapi import FastAPI
from contextlib import asynccontextmanager
from prediction_league.database import create_db_and_tables
from prediction_league.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: logging and database tables
    setup_logging()
    create_db_and_tables()
    yield
    # Shutdown: cleanup if needed


# Initialize FastAPI app
app = FastAPI(
    title="Prediction League",
    description="Score football predictions, rank players and award trophies",
    version="1.0.0",
    lifespan=lifespan
)

# Include routers
from prediction_league.routers import rankings, trophies, cron

app.include_router(rankings.router)
app.include_router(trophies.router)
app.include_router(cron.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
