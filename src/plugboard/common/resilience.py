"""
Circuit breakers for unreliable backends.

Each ConnectionManager owns one breaker per backend name so that a failing
database only fails fast for its own callers. Breakers never retry; a tripped
breaker rejects calls until ``reset_timeout`` elapses, then the next real call
is the half-open trial that closes or re-opens it.
"""
import time
import pybreaker
from typing import List, Optional, Type
from plugboard.common.logger import get_logger

logger = get_logger("resilience")


class ObservabilityListener(pybreaker.CircuitBreakerListener):
    """Logs circuit breaker state changes and failures."""

    def state_change(self, cb, old_state, new_state):
        old_name = old_state.name if old_state else "none"
        logger.warning(
            f"Circuit Breaker '{cb.name}' changed state: {old_name} -> {new_state.name}"
        )

    def failure(self, cb, exc):
        logger.error(
            f"Circuit Breaker '{cb.name}' recorded failure: {type(exc).__name__}: {exc}"
        )


class TripClock(pybreaker.CircuitBreakerListener):
    """Remembers when a breaker last opened."""

    def __init__(self):
        self.opened_at: Optional[float] = None

    def state_change(self, cb, old_state, new_state):
        if new_state.name == pybreaker.STATE_OPEN:
            self.opened_at = time.monotonic()

    def cooling_down(self, reset_timeout: float) -> bool:
        """True while an open breaker must still reject calls."""
        if self.opened_at is None:
            return False
        return time.monotonic() - self.opened_at < reset_timeout


def create_breaker(
    name: str,
    fail_max: int = 5,
    reset_timeout: float = 30,
    exclude: Optional[List[Type[Exception]]] = None,
    throw_new_error_on_trip: bool = True,
    listeners: Optional[List[pybreaker.CircuitBreakerListener]] = None,
) -> pybreaker.CircuitBreaker:
    """Factory to create a configured Circuit Breaker.

    With ``throw_new_error_on_trip=False`` the call that trips the breaker
    re-raises its own error; only later calls see CircuitBreakerError.
    """
    return pybreaker.CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        name=name,
        listeners=[ObservabilityListener(), *(listeners or [])],
        exclude=exclude or [],
        throw_new_error_on_trip=throw_new_error_on_trip,
    )
