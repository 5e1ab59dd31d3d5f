# madarij/main.py
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from http import HTTPStatus

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from madarij.api.notifications import router as notifications_router
from madarij.config import HOST, LOG_LEVEL, PORT
from madarij.infra.servicebus_consumer import consume_domain_events
from madarij.infra.table_client import ensure_table
from madarij.services.errors import NotificationError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

SERVER_ERROR = "حدث خطأ في الخادم"
ROUTE_NOT_FOUND = "المسار غير موجود"
INVALID_DATA = "البيانات المرسلة غير صالحة"
METHOD_NOT_ALLOWED = "الطريقة غير مسموح بها لهذا المسار"
BAD_REQUEST = "الطلب غير صالح"

FRAMEWORK_MESSAGES = {
    404: ROUTE_NOT_FOUND,
    405: METHOD_NOT_ALLOWED,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_table()
    # consumer de eventos de dominio en background
    consumer = asyncio.create_task(consume_domain_events())
    yield
    consumer.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await consumer


app = FastAPI(title="Madarij Notifications", lifespan=lifespan)

# CORS (se puede limitar orígenes en prod)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "message": "مركز مدارج API يعمل بنجاح"}


# ===== errores: siempre {"message": ...} =====

@app.exception_handler(NotificationError)
async def notification_error_handler(request: Request, exc: NotificationError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    # los detail por defecto de Starlette vienen en inglés
    if exc.detail == HTTPStatus(exc.status_code).phrase:
        message = FRAMEWORK_MESSAGES.get(
            exc.status_code,
            SERVER_ERROR if exc.status_code >= 500 else BAD_REQUEST,
        )
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"message": INVALID_DATA})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Error no controlado en %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": SERVER_ERROR})


def run():
    """Entrada de `madarij-server`."""
    uvicorn.run("madarij.main:app", host=HOST, port=PORT)
