"""
Shared state for the royalty splitter API.

Holds the splitter instance used by all blueprints. ``init_splitter`` builds
it from the environment; tests replace it with ``set_splitter``.
"""

import logging

from ..config import GlobalConfig
from ..splitter import RoyaltySplitter
from ..storage import get_storage_backend

logger = logging.getLogger(__name__)

splitter: RoyaltySplitter | None = None


def init_splitter() -> RoyaltySplitter:
    """Load the splitter from the configured storage backend."""
    global splitter
    storage = get_storage_backend()
    splitter = RoyaltySplitter.load(storage, config=GlobalConfig.from_env())
    logger.info("Splitter initialized with %s", storage.get_info())
    return splitter


def set_splitter(instance: RoyaltySplitter | None) -> None:
    global splitter
    splitter = instance


def get_splitter() -> RoyaltySplitter | None:
    return splitter
