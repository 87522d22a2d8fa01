"""Main entry point for the bus tracker."""

import asyncio
import logging
import sys
from dataclasses import dataclass

import aiohttp

from bus_tracker.adapters.bt4u_api import Bt4uBusFetcher, Bt4uDepartureFetcher
from bus_tracker.adapters.config import AppConfig
from bus_tracker.adapters.console import LoggingBusListener
from bus_tracker.adapters.credentials import JsonCredentialStore
from bus_tracker.adapters.favorites_backend import InMemoryFavoritesBackend
from bus_tracker.adapters.geofence import GeofenceRegistry
from bus_tracker.adapters.rate_limiter import RateLimiter
from bus_tracker.application.services import BusPollingScheduler, FavoritesStore, SessionGate
from bus_tracker.domain.ports.credential_store import CredentialStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Explicitly wired components of one tracker process."""

    scheduler: BusPollingScheduler
    departures: Bt4uDepartureFetcher
    session_gate: SessionGate
    favorites: FavoritesStore
    backend: InMemoryFavoritesBackend
    geofences: GeofenceRegistry

    async def close(self) -> None:
        """Stop polling and background work."""
        await self.scheduler.shutdown_all()
        await self.session_gate.close()
        await self.backend.close()


def build_application(
    config: AppConfig,
    session: aiohttp.ClientSession,
    credential_store: CredentialStore | None = None,
) -> Application:
    """Construct and wire all components.

    Args:
        config: Application configuration.
        session: aiohttp session for the transit feed.
        credential_store: Store for session resumption; defaults to the configured file.
    """
    # Bus and departure requests share the feed's delay
    rate_limiter = RateLimiter("bt4u", config.bt4u_min_delay_seconds)
    fetcher = Bt4uBusFetcher(
        session,
        base_url=config.bt4u_base_url,
        timeout_seconds=config.bt4u_timeout_seconds,
        rate_limiter=rate_limiter,
    )
    departures = Bt4uDepartureFetcher(
        session,
        base_url=config.bt4u_base_url,
        timeout_seconds=config.bt4u_timeout_seconds,
        rate_limiter=rate_limiter,
    )
    scheduler = BusPollingScheduler(fetcher, config.bus_poll_interval_seconds)

    backend = InMemoryFavoritesBackend()
    geofences = GeofenceRegistry(radius_meters=config.geofence_radius_meters)
    if credential_store is None:
        credential_store = JsonCredentialStore(config.credentials_file)
    session_gate = SessionGate(backend, credential_store)
    favorites = FavoritesStore(session_gate, backend, geofences)

    return Application(
        scheduler=scheduler,
        departures=departures,
        session_gate=session_gate,
        favorites=favorites,
        backend=backend,
        geofences=geofences,
    )


async def main() -> None:
    """Main application entry point."""
    config = AppConfig()
    if config.config_file:
        try:
            config.load_toml()
        except (ValueError, FileNotFoundError) as e:
            logger.error(f"Invalid configuration: {e}")
            sys.exit(1)

    if not config.watch_routes:
        logger.error("No routes to watch.")
        logger.error("Set WATCH_ROUTES (JSON list) or [tracking] routes in your TOML config.")
        sys.exit(1)

    async with aiohttp.ClientSession() as session:
        app = build_application(config, session)
        # Any geofences left from a previous process are stale
        app.geofences.unregister_all_geofences()
        await app.session_gate.resume()

        for route in config.watch_routes:
            await app.scheduler.subscribe(route, LoggingBusListener(route))
        logger.info(f"Watching {len(config.watch_routes)} route(s): {', '.join(config.watch_routes)}")

        try:
            await asyncio.Event().wait()
        finally:
            logger.info("Shutting down...")
            await app.close()


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
