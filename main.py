import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import channels
import messages
import users
from config import cors_origins, load_settings
from database import connect, ensure_indexes
from errors import ChatError
from logger import get_logger, setup_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    setup_logger(log_level=settings.log_level, file_path=settings.log_file)
    logger.info("Attempting to connect to the database...")
    client = connect(settings)
    app.state.db = client[settings.database_name]
    ensure_indexes(app.state.db)
    logger.info("Database connection successful. Serving requests")
    try:
        yield
    finally:
        logger.info("Shutting down, closing MongoDB connection")
        client.close()


app = FastAPI(title="Channel Chat API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_status(request: Request, call_next):
    response = await call_next(request)
    logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
    return response


# ---------- Error translation ----------
@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "Invalid request data")
    logger.warning(f"Validation error: {loc} {msg}")
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request data", "error": f"{loc}: {msg}" if loc else msg},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Internal server error", "error": str(exc)})


app.include_router(users.router)
app.include_router(channels.router)
app.include_router(messages.router)


@app.get("/")
def read_root():
    return {"message": "Server is running"}


@app.get("/api")
def api_status():
    return {"message": "Server is running"}


@app.get("/test")
def test_database(request: Request):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    db = getattr(request.app.state, "db", None)
    if db is None:
        return response
    try:
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    settings = load_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
