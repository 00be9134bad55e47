"""Best-effort background tasks with an explicit retry and give-up policy."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from stylist_app.logging_config import ensure_correlation_id, get_logger, log_event
from tools.errors import TransientServerError

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How often a best-effort task is attempted before it is given up."""

    max_attempts: int = 1
    backoff_seconds: float = 1.0
    retry_on: Tuple[type, ...] = (TransientServerError,)

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        return attempt < self.max_attempts and isinstance(exc, self.retry_on)


class BackgroundTaskRunner:
    """Runs fire-and-forget work off the caller's thread.

    Failures never propagate to the submitter: after the retry policy is
    exhausted the error is logged and the task resolves to ``None``.
    """

    def __init__(
        self,
        max_workers: int = 2,
        default_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.default_policy = default_policy or RetryPolicy()
        self.sleep = sleep
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="best-effort")
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def submit(
        self, name: str, func: Callable[..., Any], *args: Any, policy: RetryPolicy | None = None, **kwargs: Any
    ) -> Future:
        correlation_id = ensure_correlation_id()
        future = self._executor.submit(
            self._run, name, func, args, kwargs, policy or self.default_policy, correlation_id
        )
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)
        return future

    def _run(
        self,
        name: str,
        func: Callable[..., Any],
        args: tuple,
        kwargs: dict,
        policy: RetryPolicy,
        correlation_id: Optional[str] = None,
    ) -> Any:
        attempt = 0
        while True:
            attempt += 1
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                if policy.should_retry(exc, attempt):
                    log_event(
                        LOGGER,
                        logging.INFO,
                        "background_task_retry",
                        task=name,
                        attempt=attempt,
                        correlation_id=correlation_id,
                    )
                    self.sleep(policy.backoff_seconds)
                    continue
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "background_task_gave_up",
                    task=name,
                    attempts=attempt,
                    error_type=type(exc).__name__,
                    error=str(exc),
                    status_code=getattr(exc, "status_code", None),
                    correlation_id=correlation_id,
                )
                return None

    def wait(self, timeout: float | None = None) -> None:
        """Block until every submitted task has finished (used by tests and shutdown)."""

        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self, wait_for_tasks: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_tasks)


class InlineTaskRunner(BackgroundTaskRunner):
    """Runs tasks synchronously; deterministic stand-in for tests and scripts."""

    def __init__(self, default_policy: RetryPolicy | None = None, sleep: Callable[[float], None] = lambda _: None) -> None:
        self.default_policy = default_policy or RetryPolicy()
        self.sleep = sleep
        self._pending = []
        self._lock = threading.Lock()
        self.submitted: List[str] = []

    def submit(
        self, name: str, func: Callable[..., Any], *args: Any, policy: RetryPolicy | None = None, **kwargs: Any
    ) -> Future:
        self.submitted.append(name)
        future: Future = Future()
        future.set_result(self._run(name, func, args, kwargs, policy or self.default_policy))
        return future

    def shutdown(self, wait_for_tasks: bool = True) -> None:
        return None


__all__ = ["BackgroundTaskRunner", "InlineTaskRunner", "RetryPolicy"]
