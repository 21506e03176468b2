"""
Network/session utilities: pacing waits and proxy config.
"""

from .pacing import Pacer, PacingConfig
from .proxy import ProxyConfig

__all__ = [
    "Pacer",
    "PacingConfig",
    "ProxyConfig",
]
