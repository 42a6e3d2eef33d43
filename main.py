import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cs2sync.api.routes import inventory, prices
from cs2sync.core.config import settings
from cs2sync.core.database import engine, init_db

logger = logging.getLogger(__name__)

app = FastAPI(
    title="CS2 Inventory Sync",
    description="CS2 inventory + Skinport price reconciliation",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
app.include_router(prices.router, prefix="/api/prices", tags=["prices"])

# Set by the process that owns the logged-in GC session (see GameSession)
app.state.game_session = None


@app.on_event("startup")
async def startup():
    await init_db()
    logger.info("database ready: %s", settings.database_url.split("://", 1)[0])


@app.on_event("shutdown")
async def shutdown():
    await engine.dispose()


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0", "gc_session": app.state.game_session is not None}


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
