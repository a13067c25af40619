from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal, Dict, Any, List, Tuple
import asyncio, logging, time, websockets

log = logging.getLogger(__name__)

Point = Tuple[float, float]

class FrameObservation(BaseModel):
    """One detector result. No bbox and no eyes means no face was found."""
    timestamp: float
    left_eye: Optional[List[Point]] = None
    right_eye: Optional[List[Point]] = None
    bbox: Optional[Tuple[float, float, float, float]] = None

    @property
    def detected(self) -> bool:
        return self.bbox is not None or self.left_eye is not None or self.right_eye is not None

    @classmethod
    def not_detected(cls, timestamp: float) -> "FrameObservation":
        return cls(timestamp=timestamp)

class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: Optional[float] = None
    blink_count: int = 0
    max_detections_per_second: int = 0
    is_eye_closed: bool = False
    idle_duration: float = 0.0
    ear: Optional[float] = None
    estimated_interval: float = 4.0
    interval_variance: float = 0.0
    status: Optional[str] = None
    timestamp_anomalies: int = 0
    frames_skipped: int = 0

class Event(BaseModel):
    ts: float = Field(default_factory=lambda: time.time())
    type: Literal["blink","reopen","lost","status","anomaly","snapshot"]
    snapshot: Optional[Snapshot] = None
    extra: Dict[str,Any] = {}

async def ws_broadcast(queue: "asyncio.Queue[str]", host="0.0.0.0", port=8765):
    clients = set()

    async def handler(websocket):
        clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            clients.discard(websocket)

    async def pump():
        while True:
            msg = await queue.get()
            results = await asyncio.gather(*[c.send(msg) for c in list(clients)], return_exceptions=True)
            for r in results:
                if isinstance(r, Exception):
                    log.info("dropping websocket client: %s", r)

    async with websockets.serve(handler, host, port):
        log.info("broadcasting on ws://%s:%d", host, port)
        await pump()
