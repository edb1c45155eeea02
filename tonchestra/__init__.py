"""
tonchestra - Deployment orchestrator for TON contract artifacts

Discovers deployable units in a build directory, derives their addresses,
and funds and deploys the ones that are not on chain yet.
"""

__version__ = "0.1.0"
__author__ = "tonchestra developers"


__all__ = ["TonchestraConfig", "load_config", "get_tonchestra_home"]

from .config import TonchestraConfig, load_config, get_tonchestra_home
