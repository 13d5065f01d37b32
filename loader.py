import asyncio
import errno
import logging
import socket
import sys
from typing import Callable, Optional

import httpx

if sys.version_info < (3, 11):
    from exceptiongroup import BaseExceptionGroup

from config import settings
from models import Failed, Film, Idle, Loaded, LoadState, Loading, decode_films

logger = logging.getLogger(__name__)

NO_CONNECTION_MESSAGE = "No connection. Please try again."
NO_RESPONSE_MESSAGE = "No HTTP response from server."

# Errnos that mean there is no network path at all, as opposed to a refused
# or reset connection on a reachable host.
OFFLINE_ERRNOS = frozenset({errno.ENETUNREACH, errno.ENETDOWN, errno.EHOSTUNREACH})

StateCallback = Callable[[LoadState], None]
FilmsCallback = Callable[[tuple[Film, ...]], None]


class InvalidEndpointError(ValueError):
    def __init__(self, endpoint: object):
        super().__init__(f"Invalid endpoint URL: {endpoint!r}")
        self.endpoint = endpoint


class NoResponseError(Exception):
    """A response arrived but carried no usable HTTP status."""


class BadStatusError(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def parse_endpoint(endpoint: str) -> httpx.URL:
    """Validate the configured endpoint. Must be an absolute http(s) URL with a host."""
    try:
        url = httpx.URL(endpoint)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidEndpointError(endpoint) from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidEndpointError(endpoint)
    return url


def is_offline(exc: BaseException) -> bool:
    """
    True when the exception chain shows DNS failure or an unreachable network.

    Exception groups are searched too: a host with several addresses fails
    with one group holding an error per connection attempt.
    """
    pending: list[BaseException] = [exc]
    seen: set[int] = set()
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        if isinstance(current, OSError) and current.errno in OFFLINE_ERRNOS:
            return True
        if isinstance(current, BaseExceptionGroup):
            pending.extend(current.exceptions)
        linked = current.__cause__ or current.__context__
        if linked is not None:
            pending.append(linked)
    return False


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def failure_message(exc: Exception) -> str:
    """Map a fetch failure to the message carried by Failed."""
    if isinstance(exc, InvalidEndpointError):
        return f"Invalid endpoint URL: {exc.endpoint!r}. Check the FILMS_ENDPOINT setting."
    # ProtocolError subclasses TransportError but means the server did answer.
    if isinstance(exc, (NoResponseError, httpx.ProtocolError)):
        return NO_RESPONSE_MESSAGE
    if isinstance(exc, httpx.TransportError):
        if is_offline(exc):
            return NO_CONNECTION_MESSAGE
        return f"Network error: {_describe(exc)}"
    if isinstance(exc, BadStatusError):
        return f"Request failed with status: {exc.status_code}. Please try again."
    return f"Unexpected error: {_describe(exc)}"


class FilmLoader:
    """
    Owns the film list fetch and publishes its outcome.

    All methods must be called from the event loop that owns the loader.
    Only the awaited HTTP request suspends; state changes and subscriber
    notifications happen synchronously on that loop.
    """

    def __init__(self, endpoint: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.endpoint = settings.films_endpoint if endpoint is None else endpoint
        self._client = client
        self._state: LoadState = Idle()
        self._films: tuple[Film, ...] = ()
        self._state_subscribers: list[StateCallback] = []
        self._films_subscribers: list[FilmsCallback] = []
        self._request_seq = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def films(self) -> tuple[Film, ...]:
        return self._films

    def subscribe_state(self, callback: StateCallback) -> Callable[[], None]:
        return self._subscribe(self._state_subscribers, callback)

    def subscribe_films(self, callback: FilmsCallback) -> Callable[[], None]:
        return self._subscribe(self._films_subscribers, callback)

    def fetch(self) -> asyncio.Task:
        """
        Start a fetch. State is Loading when this returns.

        The returned task never raises; await it to wait for Loaded or Failed.
        A later call supersedes this one: only the latest result is published.

        Must be called with the owning event loop running. Without one,
        asyncio.get_running_loop raises RuntimeError before any state change.
        """
        loop = asyncio.get_running_loop()
        self._request_seq += 1
        seq = self._request_seq
        self._state = Loading()
        self._notify(self._state_subscribers, self._state)

        task = loop.create_task(self._run(seq))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def aclose(self) -> None:
        """Cancel fetches still in flight. Used on application shutdown."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("Cancelled %d pending film fetch(es)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, seq: int) -> None:
        logger.info("Fetching films from %s (request #%d)", self.endpoint, seq)
        try:
            films = await self._request()
        except Exception as exc:
            message = failure_message(exc)
            logger.warning("Film fetch #%d failed: %s", seq, message)
            self._complete(seq, Failed(message=message))
        else:
            logger.info("Film fetch #%d loaded %d films", seq, len(films))
            self._complete(seq, Loaded(), tuple(films))

    async def _request(self) -> list[Film]:
        url = parse_endpoint(self.endpoint)
        if self._client is not None:
            response = await self._client.get(url)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(url)

        status = response.status_code
        if not isinstance(status, int) or not 100 <= status <= 599:
            raise NoResponseError(f"Uninterpretable status: {status!r}")
        if not 200 <= status <= 299:
            raise BadStatusError(status)
        return decode_films(response.content)

    def _complete(self, seq: int, state: LoadState, films: Optional[tuple[Film, ...]] = None) -> None:
        if seq != self._request_seq:
            logger.debug("Dropping result of superseded fetch #%d", seq)
            return

        # Assign both fields before notifying so no observer sees a mixed view.
        self._state = state
        if films is not None:
            self._films = films

        self._notify(self._state_subscribers, self._state)
        if films is not None:
            self._notify(self._films_subscribers, self._films)

    @staticmethod
    def _subscribe(subscribers: list, callback: Callable) -> Callable[[], None]:
        subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in subscribers:
                subscribers.remove(callback)

        return unsubscribe

    @staticmethod
    def _notify(subscribers: list, value: object) -> None:
        for callback in list(subscribers):
            try:
                callback(value)
            except Exception:
                logger.exception("Subscriber %r raised while handling %r", callback, value)
