"""
Simple in-memory per-IP rate limiter for the AI endpoints.

Sliding window kept per process; it complements, not replaces, the
per-user cooldowns enforced by the usage gate.
"""
import logging
import threading
import time
from collections import deque
from typing import Deque, Dict
from fastapi import Request, HTTPException, status

from app.core.config import AI_RATE_LIMIT_REQUESTS, AI_RATE_LIMIT_WINDOW_SECONDS

logger = logging.getLogger(__name__)

# {ip: timestamps of recent requests}; idle IPs are swept once per window
rate_limit_store: Dict[str, Deque[float]] = {}
_lock = threading.Lock()
_last_sweep = 0.0


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First hop is the original client
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def _sweep_idle(cutoff: float) -> None:
    """Drop IPs with no request inside the window. Caller holds _lock."""
    idle = [ip for ip, timestamps in rate_limit_store.items() if not timestamps or timestamps[-1] <= cutoff]
    for ip in idle:
        del rate_limit_store[ip]


def check_rate_limit(request: Request, max_requests: int = 10, window_seconds: int = 60) -> None:
    """
    Check if client has exceeded rate limit.

    Raises:
        HTTPException: 429 if rate limit exceeded
    """
    global _last_sweep
    ip = get_client_ip(request)
    now = time.monotonic()
    cutoff = now - window_seconds

    with _lock:
        if now - _last_sweep >= window_seconds:
            _sweep_idle(cutoff)
            _last_sweep = now

        timestamps = rate_limit_store.setdefault(ip, deque())
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

        if len(timestamps) >= max_requests:
            logger.warning(f"Rate limit exceeded for IP: {ip} ({len(timestamps)} requests in {window_seconds}s)")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds."
            )
        timestamps.append(now)


def ai_rate_limit(request: Request) -> None:
    """FastAPI dependency applying the configured AI route limit."""
    check_rate_limit(request, AI_RATE_LIMIT_REQUESTS, AI_RATE_LIMIT_WINDOW_SECONDS)


def reset_rate_limits() -> None:
    global _last_sweep
    with _lock:
        rate_limit_store.clear()
        _last_sweep = 0.0
