"""
Per-document processing session.

A ``RenderSession`` is created for every ``WatermarkPipeline.process`` call and
owns everything that is memoised while a document is processed. Nothing is
kept at module level, so two documents never share cached state.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import PageConfig, ProcessingOptions, ProgressEvent
from .utils.cache import SessionCache

logger = logging.getLogger(__name__)


class RenderSession:
    """Session-scoped cache and progress reporting for one document."""

    def __init__(self, options: Optional[ProcessingOptions] = None, cache: Optional[SessionCache] = None):
        self.options = options or ProcessingOptions()
        self.cache = cache or SessionCache()
        self.events: List[ProgressEvent] = []

    @property
    def page_config(self) -> PageConfig:
        return self.options.page_config

    def report(self, stage: str, percent: float) -> None:
        """
        Emit a progress checkpoint.

        The callback is observational; an exception raised by it propagates to
        the caller like any other pipeline fault.
        """
        event = ProgressEvent(stage=stage, percent=int(max(0, min(100, round(percent)))))
        self.events.append(event)
        logger.debug(f"Progress {event.percent}% ({event.stage})")
        if self.options.progress_callback is not None:
            self.options.progress_callback(event)

    def close(self) -> None:
        stats = self.cache.stats()
        logger.debug(f"Session closed: cache entries={stats['entries']} hits={stats['hits']} misses={stats['misses']}")
        self.cache.clear()

    def __enter__(self) -> "RenderSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
