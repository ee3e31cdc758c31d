import secrets

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse

from guidebot.config import Settings, get_settings
from guidebot.telegram_bot.bot import GuideBot
from guidebot.telegram_bot.logging_config import bot_logger as logger, setup_logging

VERSION = "0.1.0"

app = FastAPI(
    title="Guide Bot",
    description="Telegram webhook that hands out the hotel guide to channel subscribers",
    version=VERSION
)


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Create the shared HTTP client and bot on startup."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("[STARTUP] Initializing Telegram bot...")
    app.state.bot = GuideBot.from_settings(settings)
    logger.info("[STARTUP] Bot ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the shared HTTP client on shutdown."""
    bot = getattr(app.state, "bot", None)
    if bot is not None:
        logger.info("[SHUTDOWN] Shutting down Telegram bot...")
        await bot.close()


def get_bot(request: Request) -> GuideBot:
    return request.app.state.bot


def _secret_matches(received: str | None, expected: str) -> bool:
    if not received or not expected:
        return False
    return secrets.compare_digest(received.encode(), expected.encode())


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint."""
    return "ok"


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": VERSION
    }


# Telegram webhook endpoint
@app.post("/tg-webhook")
async def telegram_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_telegram_bot_api_secret_token: str = Header(None),
    settings: Settings = Depends(get_settings),
    bot: GuideBot = Depends(get_bot)
):
    """
    Webhook endpoint for Telegram updates.

    Rejects requests without the shared secret. Everything after that is
    acknowledged with 200 so Telegram never retries; handling runs in the
    background after the response.
    """
    if not _secret_matches(x_telegram_bot_api_secret_token, settings.telegram_webhook_secret):
        raise HTTPException(status_code=403, detail="Invalid secret token")

    try:
        update_data = await request.json()
    except ValueError:
        logger.warning("Webhook body is not valid JSON, ignoring")
        return {"ok": True}

    background_tasks.add_task(bot.handle_update, update_data)

    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
