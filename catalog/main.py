import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .db import Base, SessionLocal, engine
from .errors import CatalogError, ValidationFailed
from .routers import auth, categories, contact, products, users
from .seed import seed_database
from .storage import PUBLIC_PREFIX

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables if not existing. Schema changes of existing DBs go through migration/.
    Base.metadata.create_all(bind=engine)
    settings = get_settings()
    if settings.seed_database:
        db = SessionLocal()
        try:
            seed_database(db, settings)
        finally:
            db.close()
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    application = FastAPI(title="Catalog API", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        failed = ValidationFailed.from_pydantic(exc.errors())
        return JSONResponse(status_code=failed.status_code, content=failed.to_body())

    @application.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @application.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"success": False, "message": "Internal Server Error"}
        if get_settings().is_development:
            body["error"] = str(exc)
        return JSONResponse(status_code=500, content=body)

    @application.get("/health")
    async def health():
        return {"status": "ok"}

    for module in (products, categories, auth, contact, users):
        application.include_router(module.router)

    # uploaded images are served back under their public path
    os.makedirs(settings.upload_dir, exist_ok=True)
    application.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.upload_dir), name="uploads")
    return application


app = create_app()


def run():
    import uvicorn

    settings = get_settings()
    uvicorn.run("catalog.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
