import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pathways.config import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from pathways.routers import paths

handlers: list[logging.Handler] = [logging.StreamHandler()]
if LOG_FILE:
    handlers.append(logging.FileHandler(LOG_FILE))

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    handlers=handlers,
)
logger = logging.getLogger("pathways")

app = FastAPI(title="Green Card Pathways API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(paths.router, prefix="/api/paths", tags=["paths"])

logger.info("Green Card Pathways API ready (CORS origins: %s)", ", ".join(CORS_ORIGINS))


@app.get("/api/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pathways.main:app", host="0.0.0.0", port=8000, reload=True)
