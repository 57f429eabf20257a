import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import database
from routers import api_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - [%(levelname)s] - %(name)s: %(message)s'
)
logging.getLogger().addHandler(database.MongoLogHandler())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is None:
        logger.warning("DATABASE_URL/DATABASE_NAME não definidos; a API arranca sem base de dados")
    else:
        try:
            database.ensure_indexes()
            logger.info("Índices da base de dados verificados")
        except Exception as e:
            logger.error(f"Erro ao criar índices: {e}", exc_info=True)
    yield


app = FastAPI(
    title="Workplace Safety API",
    description="Formação em segurança, reporte de quase acidentes e gamificação.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Pedido inválido em {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"message": "Dados inválidos", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg")} for e in exc.errors()]


app.include_router(api_router, prefix="/api")

if config.STORAGE_BACKEND == "local":
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")


@app.get("/")
def read_root():
    return {"message": "Workplace Safety API em execução"}


@app.get("/api/test")
def test_database():
    """Check that the backend is up and the database is reachable"""
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
        "storage": config.STORAGE_BACKEND,
    }

    if database.db is None:
        response["database"] = "⚠️  DATABASE_URL/DATABASE_NAME not set"
        return response

    response["database_name"] = database.db.name
    response["connection_status"] = "Connected"
    try:
        response["collections"] = database.db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"

    return response


if __name__ == "__main__":
    logger.info(f"Iniciando servidor na porta {config.PORT} ({config.ENVIRONMENT})")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
