"""Live bus position polling shared by all listeners of a route."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from bus_tracker.domain.contracts.bus_polling_scheduler import BusPollingSchedulerProtocol
from bus_tracker.domain.errors import FetchError, ListenerDeliveryError

if TYPE_CHECKING:
    from bus_tracker.domain.models.bus_position import BusPosition
    from bus_tracker.domain.ports.bus_fetcher import BusFetcher
    from bus_tracker.domain.ports.bus_listener import BusListener

logger = logging.getLogger(__name__)


class _RoutePoll:
    """Poll task and listeners of a single route.

    ``lock`` guards ``listeners`` and is held for the whole dispatch of a tick,
    so acquiring it means no delivery for this route is in flight.
    """

    def __init__(self, route_short_name: str, fetcher: BusFetcher, interval_seconds: float) -> None:
        self.route_short_name = route_short_name
        self.fetcher = fetcher
        self.interval_seconds = interval_seconds
        self.listeners: list[BusListener] = []
        self.lock = asyncio.Lock()
        self.task: asyncio.Task[None] | None = None
        self.closed = False

    def start(self) -> None:
        self.task = asyncio.create_task(
            self._poll_loop(), name=f"bus-poll-{self.route_short_name}"
        )
        logger.info(
            f"Started bus poll for route {self.route_short_name} "
            f"every {self.interval_seconds}s"
        )

    async def stop(self) -> None:
        """Cancel the poll task. Caller must hold ``lock``."""
        self.closed = True
        self.listeners.clear()
        task, self.task = self.task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Stopped bus poll for route {self.route_short_name}")

    def close_after_dispatch(self) -> None:
        """Stop polling once the delivery running in the poll task returns."""
        self.closed = True
        self.listeners.clear()
        logger.info(f"Stopping bus poll for route {self.route_short_name} after delivery")

    def is_dispatching_task(self) -> bool:
        return self.task is not None and asyncio.current_task() is self.task

    async def _poll_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            await self._tick()
            if self.closed:
                # Shut down from within this tick's own delivery
                return
            # Fixed rate: a slow tick shortens the following sleep
            next_tick += self.interval_seconds
            delay = next_tick - loop.time()
            if delay < 0:
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)

    async def _tick(self) -> None:
        try:
            buses = await self.fetcher.fetch(self.route_short_name)
        except FetchError as e:
            logger.warning(f"Skipping bus update for route {self.route_short_name}: {e}")
            return
        except Exception as e:
            logger.error(
                f"Unexpected error fetching buses for route {self.route_short_name}: {e}",
                exc_info=True,
            )
            return

        async with self.lock:
            logger.debug(
                f"Dispatching {len(buses)} bus position(s) for route {self.route_short_name} "
                f"to {len(self.listeners)} listener(s)"
            )
            for listener in list(self.listeners):
                await self._deliver(listener, buses)

    async def _deliver(self, listener: BusListener, buses: list[BusPosition]) -> None:
        try:
            await listener.on_buses_updated(buses)
        except Exception as e:
            error = ListenerDeliveryError(self.route_short_name, listener)
            logger.error(f"{error}: {e}", exc_info=e)


class BusPollingScheduler(BusPollingSchedulerProtocol):
    """Polls bus positions per route and fans each batch out to its listeners.

    Exactly one poll task exists per route while the route has listeners. The
    first tick fires immediately on the first subscription; later ticks follow
    at a fixed rate. Fetch failures skip a tick and never stop the poll.
    """

    def __init__(self, fetcher: BusFetcher, poll_interval_seconds: float) -> None:
        """Initialize the scheduler.

        Args:
            fetcher: Source of bus positions.
            poll_interval_seconds: Time between two ticks of a route's poll.
        """
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self._fetcher = fetcher
        self._interval_seconds = poll_interval_seconds
        self._polls: dict[str, _RoutePoll] = {}

    async def subscribe(self, route_short_name: str, listener: BusListener) -> None:
        """Register a listener for a route, starting its poll if needed.

        Args:
            route_short_name: The route to observe.
            listener: Receives every successful batch for the route.
        """
        while True:
            poll = self._polls.get(route_short_name)
            if poll is None:
                poll = _RoutePoll(route_short_name, self._fetcher, self._interval_seconds)
                self._polls[route_short_name] = poll

            if poll.is_dispatching_task():
                # The dispatching tick holds the lock and iterates a copy
                self._add_listener(poll, listener)
                return

            async with poll.lock:
                if poll.closed:
                    # Last listener left while we waited; use a fresh poll
                    continue
                self._add_listener(poll, listener)
                return

    @staticmethod
    def _add_listener(poll: _RoutePoll, listener: BusListener) -> None:
        if listener in poll.listeners:
            logger.debug(f"Listener already subscribed to route {poll.route_short_name}")
            return
        poll.listeners.append(listener)
        if poll.task is None:
            poll.start()

    async def unsubscribe(self, route_short_name: str, listener: BusListener) -> None:
        """Remove a listener, stopping the route's poll when none remain.

        Waits for an in-flight delivery of the route to finish first, so the
        caller may release whatever the listener uses once this returns.

        Args:
            route_short_name: The observed route.
            listener: The listener to remove.

        Raises:
            RuntimeError: If called from inside a delivery of the same route.
        """
        poll = self._polls.get(route_short_name)
        if poll is None:
            return
        if poll.is_dispatching_task():
            raise RuntimeError(
                f"Cannot unsubscribe from route {route_short_name} inside its own delivery"
            )

        async with poll.lock:
            if listener not in poll.listeners:
                return
            poll.listeners.remove(listener)
            if poll.listeners:
                return
            await poll.stop()
            if self._polls.get(route_short_name) is poll:
                del self._polls[route_short_name]

    async def shutdown_all(self) -> None:
        """Stop every poll and drop all listeners.

        Each poll stops after its in-flight delivery. Called from a listener,
        the poll delivering to that listener finishes the current tick and
        then ends on its own.
        """
        polls = list(self._polls.values())
        self._polls.clear()
        for poll in polls:
            if poll.is_dispatching_task():
                poll.close_after_dispatch()
                continue
            async with poll.lock:
                await poll.stop()
        if polls:
            logger.info(f"Shut down {len(polls)} bus poll(s)")

    def is_polling(self, route_short_name: str) -> bool:
        """Whether a poll task is active for the route."""
        poll = self._polls.get(route_short_name)
        return poll is not None and poll.task is not None and not poll.task.done()

    def listener_count(self, route_short_name: str) -> int:
        """Number of listeners registered for the route."""
        poll = self._polls.get(route_short_name)
        return len(poll.listeners) if poll is not None else 0

    def active_routes(self) -> set[str]:
        """Routes that currently have an active poll."""
        return {route for route in self._polls if self.is_polling(route)}
