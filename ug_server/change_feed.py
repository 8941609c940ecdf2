"""
Change feed - Pushes GraphChange records to connected renderers.

Each WebSocket client receives one `graph_updated` message per change,
naming what changed (document load, added node or edge, layout option)
and the resulting band list. Positions are not pushed; clients re-fetch
GET /api/graph.
"""
import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from ug_server.graph_manager import GraphChange

logger = logging.getLogger(__name__)

PONG = {"type": "pong"}


class ChangeFeed:
    """Set of subscribed renderer sockets."""

    def __init__(self):
        self._clients: set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def serve(self, websocket: WebSocket):
        """Subscribe a socket and answer pings until it goes away."""
        await websocket.accept()
        self._clients.add(websocket)
        logger.info(f"Renderer subscribed ({self.client_count} connected)")
        try:
            while True:
                if await websocket.receive_text() == "ping":
                    await websocket.send_json(PONG)
        except WebSocketDisconnect:
            pass
        finally:
            self._clients.discard(websocket)
            logger.info(f"Renderer unsubscribed ({self.client_count} connected)")

    async def publish(self, change: GraphChange):
        """Send one change to every subscriber, dropping sockets that fail."""
        clients = list(self._clients)
        if not clients:
            return

        message = change.to_message()
        results = await asyncio.gather(
            *(client.send_json(message) for client in clients),
            return_exceptions=True,
        )
        for client, result in zip(clients, results):
            if isinstance(result, Exception):
                logger.warning(f"Dropping renderer after failed send: {result}")
                self._clients.discard(client)
        logger.debug(f"Published {change.kind} to {len(clients)} renderer(s)")


# Global instance
change_feed = ChangeFeed()
