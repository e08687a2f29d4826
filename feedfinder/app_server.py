import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedfinder.feed_utils import render, search_feeds
from feedfinder.main.config import ALLOWED_ORIGINS, HOST, LOG_LEVEL, PORT
from feedfinder.main.errors import Err, ErrorCode, ValidationError
from feedfinder.main.tools.fetcher import close_http_client
from feedfinder.main.tools.request import parse_request_body

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; script-src 'none'; object-src 'none'",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_http_client()


app = FastAPI(
    title="FeedFinder API",
    description="Discover RSS/Atom feeds published by a given site URL.",
    version="0.1.0",
    docs_url="/docs",        # Swagger UI
    redoc_url="/redoc",      # ReDoc UI
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


@app.post(
    "/api/search-feeds",
    tags=["Feed"],
    summary="Search feeds",
    description=(
        "Accepts ``{\"url\": ...}`` and returns the RSS/Atom feeds found on that "
        "site, either advertised in its HTML or served at a conventional path."
    ),
)
async def search_feeds_endpoint(request: Request) -> JSONResponse:
    try:
        body = await request.json()
    except (ValueError, RecursionError):
        # JSONDecodeError and UnicodeDecodeError are ValueErrors too.
        result = Err(ValidationError(ErrorCode.INVALID_REQUEST_BODY, "Invalid JSON in request body"))
    else:
        target = parse_request_body(body)
        result = await search_feeds(target.value) if target.is_ok() else target

    status, payload = render(result)
    return JSONResponse(payload, status_code=status)


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(app, host=HOST, port=PORT)

if __name__ == "__main__":
    main()
