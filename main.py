import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database import Database, connect, get_db
from routers import admin, auth, biodata, contact_requests, favorites, public, users

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Error responses

def _field_error(err: dict) -> dict:
    loc = [str(part) for part in err.get("loc", ()) if part != "body"]
    field = ".".join(loc) or "body"
    if err.get("type") in ("missing", "string_too_short"):
        message = f"{loc[-1] if loc else 'body'} is required"
    elif err.get("type") == "value_error" and err.get("ctx", {}).get("error"):
        message = str(err["ctx"]["error"])
    else:
        message = f"{field}: {err.get('msg')}"
    return {"field": field, "message": message}


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [_field_error(err) for err in exc.errors()]
    message = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message, "errors": errors})


async def server_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the API. Without ``database`` a MongoDB connection is opened at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.db is None:
            app.state.db = connect()
            app.state.db.ensure_indexes()
        yield
        app.state.db.close()

    app = FastAPI(title="Porinity API", lifespan=lifespan)
    app.state.db = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PyMongoError, server_error_handler)
    app.add_exception_handler(Exception, server_error_handler)

    @app.get("/")
    def root():
        return {"message": "Porinity server is running"}

    @app.get("/test")
    def test_database(db: Database = Depends(get_db)):
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_name": None,
            "connection_status": "Not Connected",
            "collections": [],
        }
        try:
            response["database_name"] = db.name
            response["collections"] = db.db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
        except PyMongoError as e:
            response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
        return response

    for module in (auth, biodata, users, favorites, contact_requests, public, admin):
        app.include_router(module.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
