import logging

from fastapi import APIRouter, WebSocket

from ..config import RELAY_GREETING
from ..services.relay import RelayClient, RelayHub

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/relay")
async def relay_ws(websocket: WebSocket):
    """
    Binary frames (16-bit PCM from the capture device) go to every other
    connected client. Text frames are status/diagnostics and stay here.
    """
    hub: RelayHub = websocket.app.state.relay
    await websocket.accept()
    client = RelayClient(websocket, hub.next_name())
    client.send_text(RELAY_GREETING)
    hub.register(client)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            data = message.get("bytes")
            if data is not None:
                hub.broadcast(client, data)
                continue
            text = message.get("text")
            if text is not None:
                logger.info("relay %s says: %s", client.name, text)
    except Exception as e:
        logger.info("relay %s connection lost: %s", client.name, e)
    finally:
        hub.unregister(client)
