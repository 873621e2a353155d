"""Mirror download engine.

This module exports the engine that streams archives with fallback
across mirrors.
"""

from gamectl.download.engine import (
    FetchResult,
    MirrorDownloadEngine,
    TransferSample,
    order_mirrors,
)
from gamectl.download.speed import SpeedMeter

__all__ = ["FetchResult", "MirrorDownloadEngine", "SpeedMeter", "TransferSample", "order_mirrors"]
