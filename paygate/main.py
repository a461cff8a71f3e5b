# paygate/main.py

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paygate.config import settings
from paygate.db import Base, engine
from paygate.errors import PaymentError
from paygate.logging_config import get_logger
from paygate.middleware import request_id_middleware
from paygate.models import Order  # noqa: F401
from paygate.routers import health, payments

logger = get_logger(__name__)

# Local orders table only backs the database order store
if settings.ORDER_STORE_BACKEND == "database":
    Base.metadata.create_all(bind=engine)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Client-Info", "Apikey"]

# ---------------------------------------------
# APP INIT
# ---------------------------------------------
app = FastAPI(
    title="Storefront Payment Gateway API",
    version=settings.APP_VERSION,
)

# ---------------------------------------------
# MIDDLEWARE
# ---------------------------------------------
app.middleware("http")(request_id_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
)

# ---------------------------------------------
# ERROR HANDLERS
# ---------------------------------------------

@app.exception_handler(PaymentError)
async def payment_error_handler(request: Request, exc: PaymentError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("request_body_invalid", errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Payment processing failed"})

# ---------------------------------------------
# ROUTERS
# ---------------------------------------------

app.include_router(health.router, prefix="/health")

# Same paths the storefront client already calls
app.include_router(payments.router, prefix="/functions/v1")


@app.get("/")
def root():
    return {"message": f"{settings.APP_NAME} is running"}


def run():
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
