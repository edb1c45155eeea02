"""
Chain boundary for tonchestra.

Every call tonchestra makes to the network goes through a ChainClient.
The Orchestrator wraps the client in a ThrottledChainClient so that all
calls share one rate ceiling.
"""

from .client import ChainClient
from .throttle import RateLimiter, ThrottledChainClient
from .toncenter import ToncenterClient

__all__ = [
    "ChainClient",
    "RateLimiter",
    "ThrottledChainClient",
    "ToncenterClient",
]
