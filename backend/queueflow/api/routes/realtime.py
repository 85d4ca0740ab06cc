"""
Realtime Routes

WebSocket endpoint through which kiosks, terminals and monitors receive
queue events. Clients pick channels with ``?channels=kiosk,service:1`` and
may later send ``{"action": "join" | "leave", "channel": ...}`` or
``{"action": "ping"}``.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from ..deps import get_broadcaster
from ...domain.enums import RealtimeEvent
from ...realtime.broadcaster import RealtimeBroadcaster
from ...utils.logger import get_logger
from ...utils.time import format_iso, utc_now

logger = get_logger(__name__)
router = APIRouter()


def parse_channels(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [c.strip() for c in raw.split(",") if c.strip()]


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    channels: Optional[str] = Query(None),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster)
):
    await websocket.accept()
    subscription_id = await broadcaster.subscribe(websocket, parse_channels(channels))
    try:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                continue
            action = message.get("action")
            channel = message.get("channel")

            if action == "ping":
                await broadcaster.send_to(
                    subscription_id, RealtimeEvent.PONG, {"timestamp": format_iso(utc_now())}
                )
            elif action in ("join", "leave") and isinstance(channel, str) and channel:
                if action == "join":
                    current = await broadcaster.join(subscription_id, channel)
                else:
                    current = await broadcaster.leave(subscription_id, channel)
                await broadcaster.send_to(
                    subscription_id, RealtimeEvent.SUBSCRIBED, {"channels": sorted(current)}
                )
    except WebSocketDisconnect:
        pass
    except ValueError as e:
        logger.warning(f"Closing subscriber {subscription_id} after malformed message: {e}")
    finally:
        await broadcaster.unsubscribe(subscription_id)
