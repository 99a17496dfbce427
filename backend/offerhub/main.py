import logging
import sys
import uuid
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from offerhub.config import settings
from offerhub.exceptions import InternalError, OfferHubError
from offerhub.routers import offers, payment, users
from offerhub.utils.logger import logger

# Global logging configuration
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)

app = FastAPI(title="OfferHub API", version="1.0.0")

origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)

# Request logging middleware with request ID
@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = uuid.uuid4().hex[:8]
    request.state.rid = rid
    logging.info("→ %s %s rid=%s", request.method, request.url.path, rid)
    try:
        resp = await call_next(request)
        logging.info("← %s status=%s rid=%s", request.url.path, resp.status_code, rid)
        resp.headers["X-Request-ID"] = rid
        return resp
    except Exception as e:
        logging.exception("Unhandled error rid=%s: %s", rid, str(e))
        error = InternalError(str(e) or None)
        error_resp = JSONResponse({"message": error.message}, status_code=error.status_code)
        error_resp.headers["X-Request-ID"] = rid
        return error_resp


@app.exception_handler(OfferHubError)
async def offerhub_error_handler(request: Request, exc: OfferHubError):
    rid = getattr(request.state, "rid", "unknown")
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path} rid={rid}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path} rid={rid}: {exc.message}")
    return JSONResponse({"message": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"message": "Please use the right type of parameters."}, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse({"message": "Page not found"}, status_code=404)
    return JSONResponse({"message": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


app.include_router(users.router)
app.include_router(offers.router)
app.include_router(payment.router)


@app.get("/")
async def root():
    return {"message": "Welcome to the OfferHub marketplace API"}


@app.on_event("startup")
async def startup_event():
    logger.info("OfferHub API starting up...")
    database_url = settings.DATABASE_URL

    if settings.is_postgres:
        import re
        masked_url = re.sub(r'://([^:]+):([^@]+)@', r'://\1:****@', database_url)
        logger.info(f"Database URL: {masked_url}")
    else:
        logger.info("Using SQLite database (development only)")

    if settings.AUTO_CREATE_TABLES:
        try:
            from offerhub.database import Base, engine
            import offerhub.db_models  # noqa: F401  registers the tables on Base
            Base.metadata.create_all(bind=engine)
            logger.info("Tables verified")
        except Exception as e:
            logger.error(f"Failed to create tables: {e}")

    if not settings.SUPABASE_URL:
        logger.warning("SUPABASE_URL not set: offer publication will fail until storage is configured")
