"""
Background poller keeping a cached copy of a remote configuration fresh.

Lifecycle:
    poller = Poller(client, session_parameters, config_parser=json.loads)
    result = poller.start()          # blocks until the first fetch resolves
    if not result.is_initially_successful:
        ...                          # still retrying in the background
    poller.get_configuration_object().latest_value
    poller.stop()

Only one refresh is ever pending per instance: the next one is scheduled
after the previous one has fully finished, success or failure. A network
call that hangs stalls that instance's refresh cycle until the client's own
timeout fires; the poller imposes no timeout of its own.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

from .cache import CacheEntry, DualCache, utc_now
from .cache.manager import BOTH_STALE_MESSAGE, OBJECT_STALE_MESSAGE
from .clients.base import ConfigDataClient
from .errors import ContractError, FetchError, SessionError
from .logsink import LogSink, emit
from .phase import PollingPhase, validate_transition
from .scheduler import ScheduledTask, Scheduler, ThreadingScheduler
from .session import SessionManager

logger = logging.getLogger("appconfig_poller.poller")

T = TypeVar("T")

DEFAULT_POLL_INTERVAL_SECONDS = 30
REQUIRED_MINIMUM_INTERVAL_KEY = "RequiredMinimumPollIntervalInSeconds"


@dataclass
class PollOutcome:
    """Result of one refresh cycle."""
    succeeded: bool
    error: Optional[Exception] = None
    cancelled: bool = False  # poller was stopped while the cycle was in flight


@dataclass
class StartResult:
    """Result of start(). A failed start keeps retrying in the background."""
    is_initially_successful: bool
    error: Optional[Exception] = None


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or value <= 0:
        return None
    return value


class Poller(Generic[T]):
    """
    Polls a configuration session and caches the result in two tiers.

    get_configuration_string() returns the raw payload.
    get_configuration_object() returns the payload run through
    config_parser, and can be more stale than the string if newer payloads
    fail to parse.

    Network calls, the parser and the log sink all run outside the
    poller's lock. The lock is held only to check the phase and commit a
    result, so readers never wait on a refresh in flight.
    """

    def __init__(
        self,
        client: ConfigDataClient,
        session_parameters: Mapping[str, Any],
        poll_interval_seconds: Optional[float] = None,
        config_parser: Optional[Callable[[str], T]] = None,
        log_sink: Optional[LogSink] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the poller. Nothing is fetched until start().

        Args:
            client: Collaborator used to start sessions and fetch configuration
            session_parameters: Forwarded verbatim when starting a session
            poll_interval_seconds: Fixed poll interval; the service's suggested
                interval wins when it is longer
            config_parser: Derives the object tier from the raw string
            log_sink: Called as log_sink(message) or log_sink(message, error)
                for absorbed failures; defaults to the module logger
            scheduler: Runs delayed refreshes (ThreadingScheduler by default)
            clock: Source of freshness timestamps

        Raises:
            ContractError: If poll_interval_seconds is not positive or is
                below the RequiredMinimumPollIntervalInSeconds in
                session_parameters
        """
        if session_parameters is None:
            raise ContractError("session_parameters are required")
        self._validate_interval(poll_interval_seconds, session_parameters)

        self._client = client
        self._poll_interval_seconds = poll_interval_seconds
        self._log_sink = log_sink
        self._scheduler = scheduler or ThreadingScheduler()

        self._session = SessionManager(client, session_parameters)
        self._cache: DualCache[T] = DualCache(config_parser, log=log_sink, clock=clock)

        self._lock = threading.RLock()
        self._phase = PollingPhase.READY
        self._task: Optional[ScheduledTask] = None
        self._suggested_interval: Optional[float] = None
        self._cycles = 0

    @classmethod
    def from_settings(
        cls,
        client: ConfigDataClient,
        settings: Any,
        config_parser: Optional[Callable[[str], T]] = None,
        log_sink: Optional[LogSink] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "Poller[T]":
        """Build a poller from a PollerSettings instance."""
        return cls(
            client,
            settings.session_parameters(),
            poll_interval_seconds=settings.poll_interval_seconds,
            config_parser=config_parser,
            log_sink=log_sink,
            scheduler=scheduler,
            clock=clock,
        )

    @staticmethod
    def _validate_interval(
        poll_interval_seconds: Optional[float],
        session_parameters: Mapping[str, Any],
    ) -> None:
        if poll_interval_seconds is None:
            return
        if poll_interval_seconds <= 0:
            raise ContractError(
                f"poll_interval_seconds must be positive, got {poll_interval_seconds}"
            )
        minimum = session_parameters.get(REQUIRED_MINIMUM_INTERVAL_KEY)
        if minimum is not None and poll_interval_seconds < minimum:
            raise ContractError(
                f"poll_interval_seconds ({poll_interval_seconds}) is below "
                f"{REQUIRED_MINIMUM_INTERVAL_KEY} ({minimum})"
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def phase(self) -> PollingPhase:
        return self._phase

    def _set_phase(self, target: PollingPhase) -> None:
        with self._lock:
            self._phase = validate_transition(self._phase, target)

    def _is_stopped(self) -> bool:
        return self._phase is PollingPhase.STOPPED

    def start(self) -> StartResult:
        """
        Start a session and perform the first fetch.

        Blocks until that first attempt resolves. Failures are reported in
        the result rather than raised, and a retry is scheduled either way,
        so the getters are usable as soon as this returns.

        Raises:
            ContractError: If start() was already called, or after stop()
        """
        with self._lock:
            if self._phase is PollingPhase.STOPPED:
                raise ContractError("Cannot start a Poller that has been stopped")
            if self._phase is not PollingPhase.READY:
                raise ContractError("Can only call start() once for an instance of Poller!")
            self._set_phase(PollingPhase.STARTING)

        logger.info("Starting configuration poller")
        outcome = self._refresh()

        with self._lock:
            if self._is_stopped():
                return StartResult(is_initially_successful=False, error=outcome.error)
            self._set_phase(PollingPhase.ACTIVE)
            self._schedule_next()

        if not outcome.succeeded:
            logger.info("Initial configuration fetch failed, retrying in background")
        return StartResult(is_initially_successful=outcome.succeeded, error=outcome.error)

    def stop(self) -> None:
        """Cancel any pending refresh. Calling it again does nothing."""
        with self._lock:
            if self._is_stopped():
                return
            self._set_phase(PollingPhase.STOPPED)
            if self._task is not None:
                self._task.cancel()
                self._task = None
        logger.info("Configuration poller stopped")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _require_active(self) -> None:
        if self._phase is not PollingPhase.ACTIVE:
            raise ContractError("Poller is not active!")

    def get_configuration_string(self) -> CacheEntry[str]:
        """
        Latest configuration as fetched, with staleness metadata.

        Returns instantly from cache. Wait for start() to return first.
        """
        with self._lock:
            self._require_active()
            return self._cache.string_snapshot()

    def get_configuration_object(self) -> CacheEntry[T]:
        """
        Latest configuration run through config_parser.

        Can be more stale than get_configuration_string() when newer payloads
        fail to parse; error_causing_stale_value then holds the ParseError.
        Returns instantly from cache. Wait for start() to return first.
        """
        with self._lock:
            self._require_active()
            return self._cache.object_snapshot()

    # ------------------------------------------------------------------
    # Refresh loop
    # ------------------------------------------------------------------

    def next_interval_seconds(self, suggested_seconds: Optional[float] = None) -> float:
        """
        Delay before the next refresh.

        The configured interval and the service's suggestion are combined
        with max() so a short configured interval can't undercut the service.
        """
        configured = _positive(self._poll_interval_seconds)
        suggested = _positive(suggested_seconds)
        if configured is not None and suggested is not None:
            return max(configured, suggested)
        return configured or suggested or DEFAULT_POLL_INTERVAL_SECONDS

    def fetch_once(self) -> PollOutcome:
        """
        Run one refresh cycle now without scheduling another.

        Refresh cycles are not reentrant. Don't call this from several
        threads at once or while a scheduled refresh may be running. It is
        mainly meant for use with ManualScheduler.

        Raises:
            ContractError: If the poller has not been started or is stopped
        """
        if self._phase is PollingPhase.READY:
            raise ContractError("Call start() before fetch_once()")
        if self._is_stopped():
            raise ContractError("Poller is stopped")
        return self._refresh()

    def _refresh(self) -> PollOutcome:
        if not self._session.has_token:
            outcome = self._restart_session()
            if outcome is not None:
                return outcome

        token = self._session.token
        try:
            response = self._client.fetch_latest(token)
            raw = response.payload.decode("utf-8") if response.has_payload else None
        except Exception as e:
            error = e if isinstance(e, FetchError) else FetchError(str(e))
            if error is not e:
                error.__cause__ = e
            with self._lock:
                if self._is_stopped():
                    return PollOutcome(succeeded=False, cancelled=True)
                # The token may be the reason; start over with a new session
                self._session.discard()
                self._suggested_interval = None
                self._cycles += 1
                self._cache.record_failure(error)
            self._log(BOTH_STALE_MESSAGE, error)
            return PollOutcome(succeeded=False, error=error)

        parsed, parse_error = None, None
        if raw is not None:
            parsed, parse_error = self._cache.parse(raw)

        with self._lock:
            if self._is_stopped():
                return PollOutcome(succeeded=False, cancelled=True)
            self._session.adopt(response.next_token)
            self._suggested_interval = response.suggested_interval_seconds
            self._cycles += 1
            if raw is None:
                logger.debug("Configuration unchanged since last poll")
                self._cache.mark_unchanged()
            else:
                logger.debug(f"Received configuration version {response.version_label!r}")
                self._cache.store(raw, response.version_label, parsed, parse_error)

        if parse_error is not None:
            self._log(OBJECT_STALE_MESSAGE, parse_error)
        return PollOutcome(succeeded=True)

    def _restart_session(self) -> Optional[PollOutcome]:
        """Start a new session. Returns an outcome only if that failed."""
        try:
            self._session.establish_session()
        except SessionError as e:
            with self._lock:
                if self._is_stopped():
                    return PollOutcome(succeeded=False, cancelled=True)
                self._suggested_interval = None
                self._cycles += 1
                self._cache.record_failure(e)
            self._log(BOTH_STALE_MESSAGE, e)
            return PollOutcome(succeeded=False, error=e)

        with self._lock:
            if self._is_stopped():
                return PollOutcome(succeeded=False, cancelled=True)
        return None

    def _run_scheduled(self) -> None:
        with self._lock:
            if self._phase is not PollingPhase.ACTIVE:
                return
            self._task = None
        try:
            outcome = self._refresh()
            if outcome.error is not None:
                logger.debug(f"Refresh failed, will start a new session: {outcome.error}")
        finally:
            self._schedule_next()

    def _schedule_next(self) -> None:
        with self._lock:
            if self._is_stopped():
                return
            delay = self.next_interval_seconds(self._suggested_interval)
            self._task = self._scheduler.call_later(delay, self._run_scheduled)

    # ------------------------------------------------------------------
    # Logging and stats
    # ------------------------------------------------------------------

    def _log(self, message: str, error: Optional[BaseException] = None) -> None:
        emit(self._log_sink, logger, message, error)

    def get_stats(self) -> Dict[str, Any]:
        """Get poller statistics."""
        with self._lock:
            return {
                "phase": self._phase.value,
                "cycles": self._cycles,
                "sessions_started": self._session.sessions_started,
                "next_interval_seconds": self.next_interval_seconds(self._suggested_interval),
                "cache": self._cache.get_stats(),
            }
