import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from coding_jojo_app.core import config
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.verification.models.verification_models import VerificationRecord
from coding_jojo_app.notifications.models import NotificationModel

logger = logging.getLogger(__name__)


MODELS = [
    UserModel,
    VerificationRecord,
    NotificationModel,
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = AsyncIOMotorClient(config.MONGODB_URL, uuidRepresentation="standard")
    await init_beanie(
        database=client[config.DATABASE_NAME],
        document_models=MODELS,
    )
    logger.info(f"Connected to MongoDB: {config.DATABASE_NAME}")

    yield

    client.close()
    logger.info("MongoDB connection closed.")
