"""
Async Patterns Demo — CPAN 212 Lab 2
=====================================
A small FastAPI server where each endpoint shows one way of waiting for
work in Python's asyncio: callbacks, futures, coroutines, off-loop file
I/O, and sequentially chained steps.

Layout:
    patterns  — The delayed fetch primitive, exposed three ways
    handlers  — DemoService: one coroutine per endpoint
    server    — FastAPI app factory, error envelopes, static files
    cli       — `asyncdemo start` / `asyncdemo endpoints`
"""

__version__ = "1.0.0"
