import logging
from contextlib import asynccontextmanager
from typing import Optional

import pymongo
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from config import Settings, get_settings
from database import Database, get_db
from routers import (
    food_routes,
    invoice_routes,
    menu_routes,
    order_item_routes,
    order_routes,
    table_routes,
    user_routes,
)
from schemas import format_validation_error

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class DeadlineMiddleware(BaseHTTPMiddleware):
    """Every store call made while serving a request shares one deadline."""

    def __init__(self, app, timeout: float):
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(self, request: Request, call_next):
        with pymongo.timeout(self.timeout):
            return await call_next(request)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        app.state.db = Database.from_settings(settings) if owned else database
        logger.info("Restaurant API started (database %s)", app.state.db.name)
        yield
        if owned:
            app.state.db.close()
            logger.info("MongoDB client closed")

    app = FastAPI(title="Restaurant Management API", lifespan=lifespan)
    app.state.settings = settings
    if database is not None:
        app.state.db = database

    app.add_middleware(DeadlineMiddleware, timeout=settings.request_timeout_seconds)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": format_validation_error(exc)})

    @app.exception_handler(PyMongoError)
    async def store_error(request: Request, exc: PyMongoError):
        logger.error("Store call failed on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "database error"})

    # Basic health
    @app.get("/")
    def read_root():
        return {"message": "Restaurant Management Backend Running"}

    @app.get("/test")
    def test_database(db: Database = Depends(get_db)):
        status = {
            "backend": "Running",
            "database": "Not Available",
            "database_name": db.name,
            "collections": [],
        }
        try:
            status["collections"] = db.ping()
            status["database"] = "Connected & Working"
        except PyMongoError as e:
            status["database"] = f"Error: {str(e)[:80]}"
        return status

    app.include_router(menu_routes.router)
    app.include_router(food_routes.router)
    app.include_router(table_routes.router)
    app.include_router(order_routes.router)
    app.include_router(order_item_routes.router)
    app.include_router(invoice_routes.router)
    app.include_router(user_routes.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
