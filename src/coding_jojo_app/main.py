import logging
import os
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from coding_jojo_app.core import config
from coding_jojo_app.db import lifespan
from coding_jojo_app.core.exceptions_handler.http_exception_handler import (
    http_exception_handler, validation_exception_handler
)
from coding_jojo_app.core.exceptions_handler.global_exception_handler import global_exception_handler
from coding_jojo_app.users.routers.auth_routers import router as auth_router
from coding_jojo_app.verification.routers.verification_routers import router as verification_router
from coding_jojo_app.admin.routers import router as admin_router
from coding_jojo_app.notifications.routers import router as notification_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


app = FastAPI(
    title="Coding Jojo Instructor Verification API",
    description="FastAPI with Beanie and Motor",
    version="1.0.0",
    debug=config.DEBUG,
    lifespan=lifespan
)

os.makedirs(config.UPLOAD_DIR, exist_ok=True)

app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {"status": "ok", "service": "coding-jojo-verification"}


app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)


app.include_router(auth_router, prefix="/api/v1")
app.include_router(verification_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(notification_router, prefix="/api/v1")
