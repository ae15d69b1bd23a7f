from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pydantic import ValidationError
from routers.rooms import rooms_router
from backend import RoomRegistry
from transport import WebSocketTransport
from session import SignalingSession
from schemas.rooms import ClientMessage, HealthResponse
from constants import CORS_ORIGINS, ENVIRONMENT, LOG_FILE, LOG_LEVEL, STATIC_DIR
from logging_config import get_logger, setup_logging
from datetime import datetime, timezone
from typing import Optional
import asyncio
import json
import os
import uuid

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Room state lives only in this process and dies with it
    app.state.registry = RoomRegistry()
    app.state.transport = WebSocketTransport()
    logger.info(f"Signaling relay started (environment: {ENVIRONMENT})")
    yield
    app.state.registry.clear()
    logger.info("Signaling relay stopped")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(rooms_router)

logger.info("FastAPI application initialized")


def parse_frame(raw: str, connection_id: str) -> Optional[ClientMessage]:
    """Decode one inbound text frame, or None when it is not a valid event envelope."""
    try:
        return ClientMessage.model_validate(json.loads(raw))
    except json.JSONDecodeError:
        logger.debug(f"Dropping non-JSON frame from connection {connection_id}")
    except ValidationError:
        logger.debug(f"Dropping frame without an event name from connection {connection_id}")
    return None


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc).isoformat())


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Signaling socket. Each frame is {"event": name, "data": payload} in both directions."""
    registry: RoomRegistry = websocket.app.state.registry
    transport: WebSocketTransport = websocket.app.state.transport
    connection_id = None
    session = None
    writer = None
    disconnected = False

    try:
        await websocket.accept()
        connection_id = str(uuid.uuid4())
        outbox = transport.connect(connection_id)
        writer = asyncio.create_task(transport.pump(websocket, outbox, connection_id))
        session = SignalingSession(connection_id, registry, transport)
        logger.info(f"User connected: {connection_id}")

        message_count = 0
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected for connection {connection_id} (code: {message.get('code')})")
                disconnected = True
                break

            text = message.get("text")
            if text is None:
                logger.debug(f"Dropping binary frame from connection {connection_id}")
                continue

            message_count += 1
            frame = parse_frame(text, connection_id)
            if frame is None:
                continue
            logger.debug(f"Received message #{message_count} ({frame.event}) from connection {connection_id}")
            session.handle(frame.event, frame.data)

    except Exception as e:
        logger.error(f"Socket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        # Abrupt failures take the same cleanup path as a clean disconnect
        if session is not None:
            session.close()
        if connection_id is not None:
            transport.disconnect(connection_id)
        if writer is not None:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
        if not disconnected:
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")


if os.path.isdir(STATIC_DIR):
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
    logger.info(f"Serving static files from {STATIC_DIR}")
