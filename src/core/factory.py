"""Build the store and service from configuration."""

import logging
from datetime import timedelta
from typing import Optional

from config.settings import AppConfig, StoreBackend, get_config
from src.core.clock import Clock
from src.core.service import PriceService
from src.storage.sample_store import InMemorySampleStore, SampleStore, SQLiteSampleStore

logger = logging.getLogger(__name__)


def build_store(config: AppConfig) -> SampleStore:
    """Create the configured sample store."""
    if config.store_backend == StoreBackend.MEMORY:
        return InMemorySampleStore()
    return SQLiteSampleStore(str(config.resolved_db_path))


def build_service(config: Optional[AppConfig] = None, clock: Optional[Clock] = None) -> PriceService:
    """Create a price service wired to a fresh store."""
    config = config or get_config()
    store = build_store(config)
    logger.debug(f"Using {type(store).__name__} for samples")
    return PriceService(
        store,
        clock=clock,
        retention=timedelta(seconds=config.retention_seconds),
        tolerance=timedelta(seconds=config.alignment_tolerance_seconds),
    )


# Global service
_service: Optional[PriceService] = None


def get_price_service() -> PriceService:
    """Get or create the process-wide price service."""
    global _service
    if _service is None:
        _service = build_service()
    return _service


def reset_price_service() -> None:
    """Reset the process-wide price service."""
    global _service
    _service = None
