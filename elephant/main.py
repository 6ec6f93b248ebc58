import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from elephant.api.routes import router

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="white-elephant", version="0.1.0")

# The browser client may be served from a different origin than the API.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "white-elephant", "version": "0.1.0"}
