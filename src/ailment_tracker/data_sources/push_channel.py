"""Websocket push channel for the created/updated/deleted event streams."""

import asyncio
import json
import logging

import aiohttp

from ailment_tracker.config import get_settings
from ailment_tracker.data_sources.base_client import DataSourceError
from ailment_tracker.sync.transport import OnData, OnError, PushChannel, Subscription

logger = logging.getLogger(__name__)


class PushChannelError(DataSourceError):
    """Raised (and passed to on_error) when a push stream fails."""


class WebSocketSubscription(Subscription):
    """One websocket connection delivering one stream until unsubscribed."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        channel: str,
        on_data: OnData,
        on_error: OnError | None,
    ):
        self.session = session
        self.url = url
        self.channel = channel
        self.on_data = on_data
        self.on_error = on_error
        self._task = asyncio.get_running_loop().create_task(self._listen())

    async def _listen(self) -> None:
        try:
            async with self.session.ws_connect(self.url) as ws:
                logger.info("Subscribed to %s", self.channel)
                async for message in ws:
                    if message.type == aiohttp.WSMsgType.TEXT:
                        self._deliver(message.data)
                    elif message.type == aiohttp.WSMsgType.ERROR:
                        raise PushChannelError("push", f"{self.channel}: {ws.exception()}")
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, PushChannelError) as e:
            error = e if isinstance(e, PushChannelError) else PushChannelError(
                "push", f"{self.channel}: {e}"
            )
            logger.warning("Subscription error (%s): %s", self.channel, error)
            if self.on_error:
                self.on_error(error)

    def _deliver(self, raw: str) -> None:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Dropping non-JSON message on %s", self.channel)
            return
        self.on_data(payload)

    def unsubscribe(self) -> None:
        self._task.cancel()


class WebSocketPushChannel(PushChannel):
    """Subscribes to ``{push_url}/{channel}`` on a running API."""

    def __init__(self, push_url: str | None = None):
        self.push_url = (push_url or get_settings().push_url).rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def subscribe(
        self, channel: str, on_data: OnData, on_error: OnError | None = None
    ) -> Subscription:
        return WebSocketSubscription(
            self._get_session(), f"{self.push_url}/{channel}", channel, on_data, on_error
        )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
