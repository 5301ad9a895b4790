from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quiniela.database import create_db_and_tables
from quiniela.logging_config import setup_logging
from quiniela.routers import entries, pools

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield


app = FastAPI(title="Quiniela API", lifespan=lifespan)

# Allow CORS from any origin (the pool pages are served separately)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(pools.router)
app.include_router(entries.router)


@app.get("/")
def home():
    return {"status": "ok", "message": "Quiniela API is running"}
