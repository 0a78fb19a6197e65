from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from serp_intent.api.routes import intent
from serp_intent.config import settings
from serp_intent.models.schemas import ErrorResponse, HealthResponse
from serp_intent.services.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.gemini_api_key or not settings.gemini_base_url:
        logger.warning("GEMINI_API_KEY / GEMINI_BASE_URL not set; intent requests will fail")
    if not settings.serper_api_key:
        logger.warning("SERPER_API_KEY not set; analyses will run without live SERP data")
    yield


app = FastAPI(
    title="SERP Intent",
    description="Streaming search intent analysis backed by live SERP data",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(intent.router)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    message = "Invalid request body"
    for err in exc.errors():
        # An absent body and an unparsable one are reported the same way.
        missing_body = err.get("type") == "missing" and tuple(err.get("loc", ())) == ("body",)
        if err.get("type") == "json_invalid" or missing_body:
            message = "Invalid JSON"
            break
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=400)


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return {"status": "ok", "service": "serp-intent"}
