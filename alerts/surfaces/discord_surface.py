"""Discord notification surface.

Each alert is one message with an embed and a button row. Buttons carry
their action in the custom id (alert:{action}:{handle}[:{reminder_id}])
and are routed from the bot's interaction event, so messages posted
before a restart keep working. Only the link button (body tap
equivalent) leaves Discord for the reminder app.
"""

import re
from typing import Callable, Awaitable, Optional

import discord

from logger import logger
from ..errors import NotificationSurfaceUnavailable
from ..models import ActionRequest, AlertAction
from .base import NotificationSurface, SurfaceAction, SurfaceContent, SurfaceStyle

ActionCallback = Callable[[ActionRequest], Awaitable]
ReminderResolver = Callable[[int], Optional[str]]

# Discord limit on component custom ids
CUSTOM_ID_LIMIT = 100
# Messages scanned on startup for alerts posted by a previous run
ADOPT_HISTORY_LIMIT = 200

_CUSTOM_ID = re.compile(r"^alert:(?P<action>[a-z]+):(?P<handle>\d+)(?::(?P<reminder_id>.+))?$")

_BUTTON_STYLES = {
    "complete": discord.ButtonStyle.success,
    "snooze": discord.ButtonStyle.secondary,
    "stop": discord.ButtonStyle.danger,
    "start": discord.ButtonStyle.primary,
}


def custom_id_for(request: ActionRequest) -> str:
    """Encode an action as a button custom id.

    The reminder id is dropped when it would exceed Discord's limit; it is
    then resolved from the handle.
    """
    base = f"alert:{request.action.value}:{request.handle}"
    custom_id = f"{base}:{request.reminder_id}" if request.reminder_id else base
    return custom_id if len(custom_id) <= CUSTOM_ID_LIMIT else base


def parse_custom_id(custom_id: Optional[str]) -> Optional[tuple[AlertAction, int, str]]:
    """Decode a button custom id into (action, handle, reminder_id).

    Returns:
        None if the id is not an alert button
    """
    match = _CUSTOM_ID.match(custom_id or "")
    if not match:
        return None
    try:
        action = AlertAction(match["action"])
    except ValueError:
        return None
    return action, int(match["handle"]), match["reminder_id"] or ""


class ActionButton(discord.ui.Button):
    """Alert action button. Presses are routed by DiscordSurface.on_interaction."""

    def __init__(self, action: SurfaceAction):
        request = action.request
        super().__init__(
            label=action.label,
            style=_BUTTON_STYLES.get(request.action.value, discord.ButtonStyle.secondary),
            custom_id=custom_id_for(request),
        )
        self.request = request


def build_view(content: SurfaceContent) -> discord.ui.View:
    """Button row for an alert message. Must be called inside the event loop."""
    view = discord.ui.View(timeout=None)
    for action in content.actions:
        view.add_item(ActionButton(action))
    if content.open_url:
        view.add_item(discord.ui.Button(label="Open", style=discord.ButtonStyle.link, url=content.open_url))
    return view


def build_embed(content: SurfaceContent) -> discord.Embed:
    colour = discord.Colour.red() if content.style is SurfaceStyle.ALARM else discord.Colour.blurple()
    embed = discord.Embed(
        title=content.title[:256],
        description=content.body[:4096] or None,
        colour=colour,
        url=content.open_url or None,
    )
    if content.ongoing:
        embed.set_footer(text="Use a button to dismiss")
    return embed


def _custom_ids(message: discord.Message) -> list[str]:
    ids = []
    for row in message.components:
        for child in getattr(row, "children", []):
            custom_id = getattr(child, "custom_id", None)
            if custom_id:
                ids.append(custom_id)
    return ids


class DiscordSurface(NotificationSurface):
    """Posts alerts into a single Discord channel."""

    def __init__(self, bot: discord.Client, channel_id: int, on_action: ActionCallback,
                 resolve_reminder: Optional[ReminderResolver] = None):
        """Initialize the surface.

        Args:
            bot: Discord client used to resolve the channel
            channel_id: Channel alerts are posted in (0 = not configured)
            on_action: Coroutine receiving ActionRequests from button presses
            resolve_reminder: Handle -> reminder id lookup for buttons whose
                custom id carries no reminder id
        """
        self.bot = bot
        self.channel_id = channel_id
        self._on_action = on_action
        self._resolve_reminder = resolve_reminder
        self._messages: dict[int, discord.Message] = {}
        # Full payloads (title/body) for buttons posted by this process
        self._requests: dict[str, ActionRequest] = {}
        # Bumped on every remove so an in-flight post can tell it was cancelled
        self._generation: dict[int, int] = {}

    @property
    def name(self) -> str:
        return "discord"

    async def _channel(self) -> discord.abc.Messageable:
        if not self.channel_id:
            raise NotificationSurfaceUnavailable("ALERT_CHANNEL_ID not configured")
        channel = self.bot.get_channel(self.channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(self.channel_id)
            except discord.HTTPException as e:
                raise NotificationSurfaceUnavailable(f"Channel {self.channel_id} unavailable: {e}") from e
        return channel

    async def post(self, content: SurfaceContent) -> None:
        channel = await self._channel()
        await self.remove(content.handle)
        generation = self._generation.get(content.handle, 0)

        view = build_view(content)
        try:
            message = await channel.send(embed=build_embed(content), view=view)
        except discord.HTTPException as e:
            raise NotificationSurfaceUnavailable(f"Failed to post alert {content.handle}: {e}") from e
        finally:
            # The view only carries the components; presses go through on_interaction
            view.stop()

        if self._generation.get(content.handle, 0) != generation:
            # Removed while the send was in flight
            await self._delete(content.handle, message)
            return

        previous = self._messages.get(content.handle)
        self._messages[content.handle] = message
        for action in content.actions:
            self._requests[custom_id_for(action.request)] = action.request
        if previous is not None:
            await self._delete(content.handle, previous)
        logger.debug(f"Posted Discord alert {content.handle} (message {message.id})")

    async def remove(self, handle: int) -> None:
        self._generation[handle] = self._generation.get(handle, 0) + 1
        for custom_id in [c for c, r in self._requests.items() if r.handle == handle]:
            del self._requests[custom_id]
        message: Optional[discord.Message] = self._messages.pop(handle, None)
        if message is not None:
            await self._delete(handle, message)

    async def _delete(self, handle: int, message: discord.Message) -> None:
        try:
            await message.delete()
        except discord.NotFound:
            pass  # Already gone
        except discord.HTTPException as e:
            logger.warning(f"Failed to delete Discord alert {handle}: {e}")

    # ------------------------------------------------------------------
    # Button routing
    # ------------------------------------------------------------------

    def request_for(self, custom_id: str, message: Optional[discord.Message] = None) -> Optional[ActionRequest]:
        """Rebuild the ActionRequest behind a pressed button.

        Buttons posted by this process map to their original payload. Older
        buttons are decoded from the custom id; the title is left empty and
        the body is taken from the message embed.
        """
        known = self._requests.get(custom_id)
        if known is not None:
            return known

        parsed = parse_custom_id(custom_id)
        if parsed is None:
            return None
        action, handle, reminder_id = parsed
        if not reminder_id and self._resolve_reminder is not None:
            reminder_id = self._resolve_reminder(handle) or ""

        body = ""
        if message is not None and message.embeds:
            body = message.embeds[0].description or ""
        return ActionRequest(action=action, handle=handle, reminder_id=reminder_id, body=body)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        """Bot listener: route alert button presses into the alert core."""
        if interaction.type is not discord.InteractionType.component:
            return
        custom_id = (interaction.data or {}).get("custom_id")
        request = self.request_for(custom_id, interaction.message)
        if request is None:
            return

        # Acknowledge first; the handler may take longer than Discord's 3s window
        await interaction.response.defer()

        if interaction.message is not None and request.handle not in self._messages:
            self._messages[request.handle] = interaction.message

        if not request.reminder_id and request.action in (AlertAction.SNOOZE, AlertAction.START):
            logger.warning(f"Alert {request.handle} has no known reminder, removing instead of {request.action.value}")
            await self.remove(request.handle)
            return

        await self._on_action(request)

    async def adopt_existing(self, limit: int = ADOPT_HISTORY_LIMIT) -> int:
        """Track alert messages left in the channel by a previous run.

        Makes them removable by handle again. Older duplicates for the same
        handle are deleted.

        Returns:
            Count of adopted messages
        """
        channel = await self._channel()
        adopted = 0
        async for message in channel.history(limit=limit):
            if message.author != self.bot.user:
                continue
            handles = {parsed[1] for parsed in map(parse_custom_id, _custom_ids(message)) if parsed}
            for handle in handles:
                if handle in self._messages:
                    # History is newest first; anything after is stale
                    if self._messages[handle] is not message:
                        await self._delete(handle, message)
                    continue
                self._messages[handle] = message
                adopted += 1

        if adopted:
            logger.info(f"Adopted {adopted} alert messages from a previous run")
        return adopted
