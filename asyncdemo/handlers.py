"""
Demo Handlers
=============
DemoService holds the per-app collaborators (user record, failure policy,
delays, storage directory) and implements one coroutine per endpoint.

Each coroutine returns a success envelope or raises EndpointFailure, which
the server turns into a 500 response. Nothing here knows about HTTP.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Optional

from asyncdemo.config import ServerConfig
from asyncdemo.models import (
    ChainEnvelope, ChainResult, ChainStep, DataEnvelope, FileEnvelope,
    IndexEnvelope, UserRecord, utc_timestamp,
)
from asyncdemo.patterns import (
    FailurePolicy, SimulatedFailure, fetch_as_future, fetch_async,
    fetch_with_callback, simulate_delay,
)

logger = logging.getLogger(__name__)

DEMO_FILENAME = "sample.txt"

AVAILABLE_ENDPOINTS = ["/", "/callback", "/promise", "/async", "/file", "/chain"]

ROUTE_SUMMARIES = [
    ("/", "Root endpoint with instructions"),
    ("/callback", "Callback demonstration"),
    ("/promise", "Promise demonstration"),
    ("/async", "Async/await demonstration"),
    ("/file", "File reading demonstration"),
    ("/chain", "Chained operations demonstration"),
]

ENDPOINT_DESCRIPTIONS = [
    "GET /callback - Demonstrates callback pattern",
    "GET /promise - Demonstrates Promise pattern",
    "GET /async - Demonstrates async/await pattern",
    "GET /file - Demonstrates file reading with asyncio.to_thread",
    "GET /chain - Demonstrates chained operations with simulate_delay",
]

# (action, message, log line); delays come from ServerConfig.chain_delays_ms
CHAIN_STEPS = (
    ("login", "User login successful", "Simulating login..."),
    ("fetch_data", "User data fetched successfully", "Fetching user data..."),
    ("render", "Data rendered successfully", "Rendering data..."),
)


class EndpointFailure(Exception):
    """A handled, request-local failure reported to the client as a 500."""

    status_code = 500

    def __init__(self, error: str, message: str):
        super().__init__(message)
        self.error = error          # Short title, e.g. "Promise failed"
        self.message = message      # Underlying cause


class DemoService:
    """The five demo operations plus the index description."""

    def __init__(
        self,
        user: UserRecord,
        policy: Optional[FailurePolicy] = None,
        fetch_delay_ms: int = 1000,
        chain_delays_ms: tuple[int, ...] = (800, 1200, 600),
        storage_dir: Optional[str] = None,
    ):
        if len(chain_delays_ms) != len(CHAIN_STEPS):
            raise ValueError(
                f"chain_delays_ms needs {len(CHAIN_STEPS)} entries, got {len(chain_delays_ms)}"
            )
        self.user = user
        self.policy = policy or FailurePolicy()
        self.fetch_delay_ms = fetch_delay_ms
        self.chain_delays_ms = tuple(chain_delays_ms)
        self.storage_dir = storage_dir or os.getcwd()

    @classmethod
    def from_config(cls, config: ServerConfig, policy: Optional[FailurePolicy] = None) -> DemoService:
        return cls(
            user=config.user,
            policy=policy or FailurePolicy(config.failure_probability),
            fetch_delay_ms=config.fetch_delay_ms,
            chain_delays_ms=config.chain_delays_ms,
            storage_dir=config.storage_dir,
        )

    @property
    def demo_file(self) -> Path:
        return Path(self.storage_dir, DEMO_FILENAME).resolve()

    # ─────────────────────────────────────────────────────────
    #  Index
    # ─────────────────────────────────────────────────────────

    def describe(self) -> IndexEnvelope:
        return IndexEnvelope(
            message="CPAN 212 Lab 2 - Async Programming Demo",
            author=self.user.name,
            endpoints=list(ENDPOINT_DESCRIPTIONS),
            instructions="Visit any endpoint to see the respective async pattern in action",
        )

    # ─────────────────────────────────────────────────────────
    #  Delay-and-fetch variants
    # ─────────────────────────────────────────────────────────

    async def callback(self) -> DataEnvelope:
        """Fetch via an (error, data) callback; never fails."""
        logger.info("Callback endpoint called")
        done = asyncio.get_running_loop().create_future()

        def on_fetched(error, data):
            # The awaiting request may already be gone (client disconnect, shutdown).
            if done.done():
                return
            if error is not None:
                logger.error("Callback error: %s", error)
                done.set_exception(EndpointFailure("Callback failed", str(error)))
                return
            try:
                envelope = DataEnvelope(
                    method="callback",
                    message="Data fetched successfully using callback",
                    data=data,
                )
            except Exception as e:
                done.set_exception(e)
                return
            logger.info("Callback success: %s", data)
            done.set_result(envelope)

        fetch_with_callback(self.user.to_dict(), on_fetched, self.fetch_delay_ms)
        return await done

    async def promise(self) -> DataEnvelope:
        logger.info("Promise endpoint called")
        future = fetch_as_future(
            self.user.to_dict(), self.fetch_delay_ms, self.policy,
            "Promise rejected: Simulated API failure",
        )
        try:
            data = await future
        except SimulatedFailure as e:
            logger.error("Promise error: %s", e)
            raise EndpointFailure("Promise failed", str(e)) from e

        logger.info("Promise resolved: %s", data)
        return DataEnvelope(
            method="promise",
            message="Data fetched successfully using Promise",
            data=data,
        )

    async def async_await(self) -> DataEnvelope:
        logger.info("Async/await endpoint called")
        try:
            data = await fetch_async(
                self.user.to_dict(), self.fetch_delay_ms, self.policy,
                "Async operation failed: Simulated API failure",
            )
        except SimulatedFailure as e:
            logger.error("Async error: %s", e)
            raise EndpointFailure("Async operation failed", str(e)) from e

        logger.info("Async operation success: %s", data)
        return DataEnvelope(
            method="async/await",
            message="Data fetched successfully using async/await",
            data=data,
        )

    # ─────────────────────────────────────────────────────────
    #  File round-trip
    # ─────────────────────────────────────────────────────────

    def render_sample(self) -> str:
        return (
            "Sample file content for CPAN 212 Lab 2\n"
            f"User ID: {self.user.id}\n"
            f"User Name: {self.user.name}\n"
            f"Created at: {utc_timestamp()}\n"
            "This file demonstrates asynchronous file reading with asyncio"
        )

    async def file_roundtrip(self) -> FileEnvelope:
        """Overwrite the demo file, read it straight back, return what was read.

        The path is shared by every request and is not locked: with
        concurrent calls the last write before a read wins.
        """
        logger.info("File reading endpoint called")
        path = self.demo_file
        try:
            await asyncio.to_thread(path.write_text, self.render_sample(), encoding="utf-8")
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as e:
            logger.error("File reading error: %s", e)
            raise EndpointFailure("File reading failed", str(e)) from e

        logger.info("File read successfully: %s", path)
        return FileEnvelope(
            method="asyncio.to_thread",
            message="File read successfully using asyncio.to_thread",
            file_path=str(path),
            content=content,
        )

    # ─────────────────────────────────────────────────────────
    #  Chained steps
    # ─────────────────────────────────────────────────────────

    async def chain(self) -> ChainEnvelope:
        """Run login → fetch_data → render one after another and time the lot."""
        logger.info("Chain operations endpoint called")
        results = ChainResult()
        start = time.monotonic()
        try:
            for number, ((action, message, log_line), delay_ms) in enumerate(
                zip(CHAIN_STEPS, self.chain_delays_ms), start=1
            ):
                logger.info("Step %d: %s", number, log_line)
                await simulate_delay(delay_ms)
                results.steps.append(ChainStep(
                    step=number,
                    action=action,
                    message=message,
                    data=self.user.to_dict() if action == "fetch_data" else None,
                ))
        except Exception as e:
            logger.error("Chain operations error: %s", e)
            raise EndpointFailure("Chain operations failed", str(e)) from e

        results.total_time = round((time.monotonic() - start) * 1000)
        logger.info("All chain operations completed successfully in %d ms", results.total_time)
        return ChainEnvelope(
            method="chained operations",
            message="All operations completed successfully",
            results=results,
        )
