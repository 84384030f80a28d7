"""Single-outstanding-request guard for AI calls."""

from dataclasses import dataclass, field
from datetime import date

GuardKey = tuple[str, date, str]


class RequestInFlightError(RuntimeError):
    """Raised when a call is already outstanding for the same key."""


class RequestCancelledError(RuntimeError):
    """Raised when a response arrives after its request was cancelled."""


@dataclass(frozen=True)
class RequestToken:
    """Handle for one outstanding request."""

    key: GuardKey
    generation: int


@dataclass
class RequestGuard:
    """Tracks in-flight AI calls per (operation, date, slot).

    ``invalidate`` bumps the key's generation so a response arriving later is
    recognised as stale and dropped by the caller.
    """

    _generations: dict[GuardKey, int] = field(default_factory=dict)
    _in_flight: set[GuardKey] = field(default_factory=set)

    def begin(self, key: GuardKey) -> RequestToken:
        """Mark a request as started and return its token."""
        if key in self._in_flight:
            raise RequestInFlightError(
                f"A {key[0]} request is already running for {key[2]} on "
                f"{key[1].isoformat()}"
            )
        self._in_flight.add(key)
        return RequestToken(key=key, generation=self._generations.get(key, 0))

    def is_current(self, token: RequestToken) -> bool:
        """Return True when nothing invalidated the token's key since begin."""
        return self._generations.get(token.key, 0) == token.generation

    def finish(self, token: RequestToken) -> None:
        """Release the in-flight marker held by a token."""
        if self.is_current(token):
            self._in_flight.discard(token.key)

    def invalidate(self, key: GuardKey) -> None:
        """Abandon any outstanding request for the key."""
        self._generations[key] = self._generations.get(key, 0) + 1
        self._in_flight.discard(key)

    def invalidate_slot(self, day: date, slot: str) -> None:
        """Abandon every operation outstanding for a meal slot."""
        for key in list(self._in_flight):
            if key[1] == day and key[2] == slot:
                self.invalidate(key)

    def is_busy(self, key: GuardKey) -> bool:
        """Return True while a request for the key is outstanding."""
        return key in self._in_flight
