"""
Realtime channels over a single WebSocket.

Text frames are handed to channel callbacks unchanged. The socket is opened
on the first subscribe; when the server drops it, the next subscribe opens a
fresh one and re-announces every channel that was subscribed.
"""

from typing import Optional, Dict, Any, Callable, List, Awaitable, Union
from urllib.parse import quote
import asyncio
import inspect
import logging

import aiohttp

from .exceptions import ParseError, RealtimeError
from .json_value import dump_json, parse_json

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], Union[None, Awaitable[None]]]


class RealtimeChannel:
    """A named stream of text frames and the callbacks listening to it."""

    def __init__(self, client: "RealtimeClient", name: str) -> None:
        self._client = client
        self._name = name
        self._handlers: List[MessageHandler] = []
        self._subscribed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    def on_message(self, callback: MessageHandler) -> "RealtimeChannel":
        """Add a callback; it receives each frame's raw text."""
        self._handlers.append(callback)
        return self

    def off(self, callback: Optional[MessageHandler] = None) -> "RealtimeChannel":
        """Drop ``callback``, or every callback when none is given."""
        if callback is None:
            self._handlers.clear()
        else:
            self._handlers = [h for h in self._handlers if h != callback]
        return self

    async def subscribe(self) -> "RealtimeChannel":
        if not self._subscribed:
            await self._client._announce("subscribe", self._name)
            self._subscribed = True
        return self

    async def unsubscribe(self) -> None:
        """Leave the channel. Callbacks are dropped and the name is freed."""
        if not self._subscribed:
            return
        await self._client._announce("unsubscribe", self._name)
        self._subscribed = False
        self._handlers.clear()
        self._client._forget(self)

    async def dispatch(self, message: str) -> None:
        """Run every callback on ``message``; failures are logged, not raised."""
        for handler in list(self._handlers):
            try:
                outcome = handler(message)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("Handler on channel %s failed", self._name)


class RealtimeClient:
    """Owns the socket and the channel registry."""

    def __init__(self, ws_url: str, api_key: str, get_token: Any) -> None:
        self._ws_url = ws_url
        self._api_key = api_key
        self._get_token = get_token
        self._channels: Dict[str, RealtimeChannel] = {}
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._receive_task: Optional["asyncio.Task[None]"] = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def channel(self, name: str) -> RealtimeChannel:
        """Return the channel called ``name``, registering it on first use."""
        found = self._channels.get(name)
        if found is None:
            found = self._channels[name] = RealtimeChannel(self, name)
        return found

    async def subscribe(self, name: str, callback: MessageHandler) -> RealtimeChannel:
        return await self.channel(name).on_message(callback).subscribe()

    def _connect_url(self) -> str:
        params = [f"apikey={quote(self._api_key, safe='')}"]
        token = self._get_token()
        if token:
            params.append(f"token={quote(token, safe='')}")
        separator = "&" if "?" in self._ws_url else "?"
        return self._ws_url + separator + "&".join(params)

    async def connect(self) -> None:
        """
        Open the socket and re-announce subscribed channels.

        Raises:
            RealtimeError: the WebSocket handshake failed.
        """
        if self._connected:
            return
        # a socket the server already closed is still holding its session
        await self._release()

        session = aiohttp.ClientSession()
        try:
            ws = await session.ws_connect(self._connect_url())
        except aiohttp.ClientError as e:
            await session.close()
            raise RealtimeError(f"Realtime connection failed: {e}") from e

        self._session, self._ws = session, ws
        self._connected = True
        logger.debug("Realtime socket connected to %s", self._ws_url)
        self._receive_task = asyncio.create_task(self._receive_loop(ws))

        resumed = [c.name for c in self._channels.values() if c.subscribed]
        for name in resumed:
            await self._send({"type": "subscribe", "channel": name})
        if resumed:
            logger.info("Resubscribed %d channel(s) after reconnect", len(resumed))

    async def disconnect(self) -> None:
        """Close the socket and forget every channel."""
        self._connected = False
        task, self._receive_task = self._receive_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._release()
        self._channels.clear()

    async def _release(self) -> None:
        ws, self._ws = self._ws, None
        session, self._session = self._session, None
        if ws is not None:
            await ws.close()
        if session is not None:
            await session.close()

    def _targets(self, message: str) -> List[RealtimeChannel]:
        """Subscribed channels a frame goes to."""
        try:
            envelope = parse_json(message)
        except ParseError:
            envelope = None
        if isinstance(envelope, dict):
            name = envelope.get("channel")
            if isinstance(name, str) and name in self._channels:
                addressed = self._channels[name]
                return [addressed] if addressed.subscribed else []
        return [c for c in self._channels.values() if c.subscribed]

    async def handle_message(self, message: str) -> None:
        """Route one text frame to its channel(s)."""
        for channel in self._targets(message):
            await channel.dispatch(message)

    async def _receive_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                await self.handle_message(msg.data)
            elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                break

        # server side close; a later connect() must not see this socket as live
        if self._ws is ws:
            logger.info("Realtime socket closed by server")
            self._connected = False
            await self._release()

    async def _send(self, frame: Dict[str, Any]) -> None:
        if self._ws is None:
            raise RealtimeError("Realtime socket is not open")
        await self._ws.send_str(dump_json(frame))

    async def _announce(self, action: str, name: str) -> None:
        if not self._connected:
            await self.connect()
        await self._send({"type": action, "channel": name})

    def _forget(self, channel: RealtimeChannel) -> None:
        if self._channels.get(channel.name) is channel:
            del self._channels[channel.name]
