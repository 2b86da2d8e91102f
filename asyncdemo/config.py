"""
Server Configuration
====================
Runtime settings for the demo server. Only the listening port can come
from the environment; everything else is set in code or by CLI flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from asyncdemo.models import UserRecord


DEFAULT_USER = UserRecord(id=12345, name="Maryan Farah")


@dataclass
class ServerConfig:
    """Settings shared by the app factory and the CLI.

    Delays are in milliseconds. Tests shrink them to keep the suite fast.
    """

    host: str = "0.0.0.0"
    port: int = 3000
    public_dir: str = "public"          # Static assets served at "/"
    storage_dir: str = field(default_factory=os.getcwd)  # Where sample.txt lives
    fetch_delay_ms: int = 1000          # /callback, /promise, /async
    chain_delays_ms: tuple[int, ...] = (800, 1200, 600)  # login, fetch_data, render
    failure_probability: float = 0.1    # /promise and /async only
    user: UserRecord = DEFAULT_USER

    @classmethod
    def from_env(cls, **overrides) -> ServerConfig:
        """Build a config, taking the port from $PORT when it is set."""
        port = os.environ.get("PORT")
        if port and "port" not in overrides:
            overrides["port"] = int(port)
        return cls(**overrides)
