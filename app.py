"""Pagewise: start the server with: python app.py"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from pagewise.api import functions, routes
from pagewise.api.services import init_services, load_config

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-7s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("pagewise")

# ── Startup ──────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    services = init_services(config)

    ok = await services.llm.health_check()
    if ok:
        logger.info("LLM is reachable, Pagewise is ready!")
    else:
        logger.warning(
            "LLM not reachable. Reading works, but translation and chat will fail "
            "until the endpoint and API key in config.yaml are set."
        )
    yield


# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(title="Pagewise", version="0.1.0", lifespan=lifespan)


class PermissiveCORSMiddleware(CORSMiddleware):
    """Any origin, method and header; preflight requests get an empty 200."""

    def preflight_response(self, request_headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            k: v for k, v in response.headers.items() if k not in ("content-length", "content-type")
        }
        return Response(status_code=response.status_code, headers=headers)


# Browser clients call every JSON route cross-origin
app.add_middleware(
    PermissiveCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router)
app.include_router(routes.session_router)
app.include_router(functions.router)


@app.get("/")
async def index():
    return {"name": "Pagewise", "docs": "/docs"}


# ── Run ──────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
