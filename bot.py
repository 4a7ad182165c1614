import logging
import secrets
from contextlib import asynccontextmanager

import uvicorn
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.redis import RedisStorage
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

import config
from services.storefront import Storefront
from storefront_api.api_client import StorefrontApiClient

# Validate critical configuration before bot initialization
from utils.config_validator import validate_or_exit
validate_or_exit(config)

redis = Redis(host=config.REDIS_HOST, password=config.REDIS_PASSWORD)
bot = Bot(config.TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
storefront = Storefront(redis, StorefrontApiClient())
# storefront is injected into every handler as a keyword argument
dp = Dispatcher(storage=RedisStorage(redis), storefront=storefront)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    config.initialize_webhook_config()
    if config.WEBHOOK_URL:
        await bot.set_webhook(
            url=config.WEBHOOK_URL,
            secret_token=config.WEBHOOK_SECRET_TOKEN
        )
        logging.info("[Startup] Webhook registered with Telegram")

    yield

    logging.warning('Shutting down..')
    if config.WEBHOOK_URL:
        await bot.delete_webhook()
    await storefront.api.close()
    await dp.storage.close()
    await bot.session.close()
    logging.warning('Bye!')


app = FastAPI(lifespan=lifespan)


@app.get("/health")
async def health_check():
    """Health check endpoint for container monitoring."""
    return {"status": "healthy"}


@app.post(config.WEBHOOK_PATH)
async def webhook(request: Request):
    secret_token = request.headers.get("X-Telegram-Bot-Api-Secret-Token")

    if secret_token is None:
        logging.warning("Webhook request rejected: Missing X-Telegram-Bot-Api-Secret-Token header")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    if not secrets.compare_digest(secret_token, config.WEBHOOK_SECRET_TOKEN):
        logging.warning("Webhook request rejected: Invalid secret token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    # Do not log the update: it carries delivery details and payment screenshots
    update_data = await request.json()
    await dp.feed_webhook_update(bot, update_data)
    return {"status": "ok"}


@app.exception_handler(Exception)
async def exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
    )


def main() -> None:
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)
