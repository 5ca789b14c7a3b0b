"""Promemoria Alerts - Discord host process.

Posts reminder alerts into a Discord channel and serves the local alerts
API for the reminder app, both on one event loop.
"""

import asyncio

import discord
import uvicorn
from discord.ext import commands
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from alerts import AlertService, NotificationSurfaceUnavailable
from alerts.surfaces import DiscordSurface
from alerts_api import create_app
from logger import logger
from config import (
    DISCORD_TOKEN,
    ALERT_CHANNEL_ID,
    ALERT_APP_URL,
    ALERT_API_HOST,
    ALERT_API_PORT,
)

# Initialize bot
intents = discord.Intents.default()
bot = commands.Bot(command_prefix="/", intents=intents)

# Initialize scheduler and alert service
scheduler = AsyncIOScheduler()
service = AlertService(scheduler, app_url=ALERT_APP_URL)


@bot.event
async def on_ready():
    """Called when bot is connected and ready."""
    logger.info(f"Logged in as {bot.user}")

    if service.presenter.surface is None:
        surface = DiscordSurface(bot, ALERT_CHANNEL_ID, service.on_action,
                                 resolve_reminder=service.handles.reminder_id)
        bot.add_listener(surface.on_interaction, "on_interaction")
        service.attach_surface(surface)
        try:
            await surface.adopt_existing()
        except (NotificationSurfaceUnavailable, discord.HTTPException) as e:
            logger.warning(f"Could not scan alert channel: {e}")

    if not scheduler.running:
        service.start()
        try:
            count = service.reload_pending()
            if count > 0:
                logger.info(f"Reloaded {count} pending alerts")
        except Exception as e:
            logger.error(f"Failed to reload alerts: {e}")

    logger.info(f"Scheduler running with {len(scheduler.get_jobs())} jobs")


async def main():
    server = uvicorn.Server(uvicorn.Config(
        create_app(service),
        host=ALERT_API_HOST,
        port=ALERT_API_PORT,
        log_level="info",
    ))
    try:
        async with bot:
            await asyncio.gather(bot.start(DISCORD_TOKEN), server.serve())
    finally:
        await service.shutdown()


if __name__ == "__main__":
    if not DISCORD_TOKEN:
        raise SystemExit("DISCORD_TOKEN is not set")
    asyncio.run(main())
