import asyncio
import itertools
import logging
from typing import Callable, Optional, Set, Tuple, Union

logger = logging.getLogger(__name__)

_Message = Tuple[str, Union[bytes, str]]


class _Subscriber:
    """Outbound side of one relay endpoint: a FIFO queue drained by its own task."""

    def __init__(self, name: str):
        self.name = name
        self.queue: "asyncio.Queue[Optional[_Message]]" = asyncio.Queue()
        self.task: Optional[asyncio.Task] = None
        self.on_error: Optional[Callable[["_Subscriber"], None]] = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    def send_bytes(self, data: bytes) -> None:
        self.queue.put_nowait(("bytes", data))

    def send_text(self, text: str) -> None:
        self.queue.put_nowait(("text", text))

    def close(self) -> None:
        # anything still queued is dropped with the connection
        while not self.queue.empty():
            self.queue.get_nowait()
        self.queue.put_nowait(None)

    async def _deliver(self, kind: str, payload) -> None:
        raise NotImplementedError

    async def pump(self) -> None:
        while True:
            item = await self.queue.get()
            if item is None:
                return
            try:
                await self._deliver(*item)
            except Exception as e:
                logger.info("%r send failed, dropping: %s", self, e)
                if self.on_error:
                    self.on_error(self)
                return


class RelayClient(_Subscriber):
    """One WebSocket connection to the relay."""

    def __init__(self, websocket, name: str):
        super().__init__(name)
        self.websocket = websocket

    async def _deliver(self, kind: str, payload) -> None:
        if kind == "bytes":
            await self.websocket.send_bytes(payload)
        else:
            await self.websocket.send_text(payload)


class RelayTap(_Subscriber):
    """In-process consumer of relayed audio; the callback runs in a worker thread."""

    def __init__(self, callback: Callable[[bytes], object], name: str):
        super().__init__(name)
        self.callback = callback

    async def _deliver(self, kind: str, payload) -> None:
        try:
            await asyncio.to_thread(self.callback, payload)
        except Exception:
            logger.exception("relay tap %s failed on %d-byte frame", self.name, len(payload))


class RelayHub:
    """
    Binary fan-out between relay endpoints.

    A single dispatcher task owns the set of open endpoints and handles
    register / unregister / broadcast events in arrival order, so the set is
    never mutated while a broadcast walks it. Each endpoint has its own
    outbound queue, so a slow receiver only delays itself. Frames from one
    sender reach every other endpoint in the order they were sent.
    All methods must be called from the event loop running the hub.
    """

    def __init__(self):
        self._events: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._subscribers: Set[_Subscriber] = set()
        self._ids = itertools.count(1)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def client_count(self) -> int:
        return sum(1 for s in self._subscribers if isinstance(s, RelayClient))

    async def start(self) -> None:
        self._events = asyncio.Queue()
        self._task = asyncio.create_task(self._dispatch(), name="relay-dispatch")
        logger.info("relay hub started")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        tasks = []
        for sub in list(self._subscribers):
            sub.close()
            if sub.task is not None:
                sub.task.cancel()
                tasks.append(sub.task)
        self._subscribers.clear()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("relay hub stopped")

    def next_name(self) -> str:
        return f"client-{next(self._ids)}"

    def register(self, sub: _Subscriber) -> None:
        self._events.put_nowait(("register", sub, None))

    def unregister(self, sub: _Subscriber) -> None:
        self._events.put_nowait(("unregister", sub, None))

    def broadcast(self, sender: Optional[_Subscriber], data: bytes) -> None:
        self._events.put_nowait(("broadcast", sender, data))

    def add_tap(self, callback: Callable[[bytes], object], name: str = "tap") -> RelayTap:
        tap = RelayTap(callback, name)
        self.register(tap)
        return tap

    async def _dispatch(self) -> None:
        while True:
            kind, sub, data = await self._events.get()
            try:
                self._handle(kind, sub, data)
            except Exception:
                logger.exception("relay: failed to handle %s event for %r", kind, sub)

    def _handle(self, kind: str, sub: Optional[_Subscriber], data: Optional[bytes]) -> None:
        if kind == "register":
            if sub in self._subscribers:
                return
            sub.on_error = self.unregister
            sub.task = asyncio.create_task(sub.pump(), name=f"relay-send-{sub.name}")
            self._subscribers.add(sub)
            logger.info("relay: %r connected (%d open)", sub, len(self._subscribers))
        elif kind == "unregister":
            if sub not in self._subscribers:
                return
            self._subscribers.discard(sub)
            sub.close()
            logger.info("relay: %r disconnected (%d open)", sub, len(self._subscribers))
        elif kind == "broadcast":
            for target in self._subscribers:
                if target is not sub:
                    target.send_bytes(data)
        else:
            raise ValueError(f"unknown relay event {kind!r}")
