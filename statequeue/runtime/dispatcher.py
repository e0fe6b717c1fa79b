# statequeue/runtime/dispatcher.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from concurrent.futures import wait as wait_futures
from enum import Enum, auto
from typing import Any, Callable, Hashable, Optional, Tuple

from statequeue.core.errors import FatalDispatchError, InvalidTriggerError, StateQueueError
from statequeue.runtime.invocation_queue import InvocationQueue, QueuedInvocation
from statequeue.runtime.rendezvous import Rendezvous

logger = logging.getLogger(__name__)

DEFAULT_IDLE_INTERVAL = 0.05


class DispatcherStatus(Enum):
    """Lifecycle of the dispatcher's worker loop."""

    STOPPED = auto()
    RUNNING = auto()
    STOPPING = auto()


class _CancellationToken:
    """
    Internal cooperative stop signal for one run of the worker loop.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


class Dispatcher:
    """
    Single-consumer queue processor. Any number of threads may submit fire
    requests; one worker drains them in FIFO order, handing each to the
    processor and running it to completion before dequeuing the next.

    Rejections (InvalidTriggerError) are reported to the rejection handler and
    processing continues. Any other failure cancels the dispatcher, leaves the
    remaining queued work untouched and surfaces as FatalDispatchError through
    the future returned by `start`.
    """

    def __init__(
        self,
        processor: Callable[[QueuedInvocation], Any],
        rejection_handler: Optional[Callable[[QueuedInvocation, InvalidTriggerError], None]] = None,
        name: str = "",
        log: Optional[logging.Logger] = None,
        idle_interval: float = DEFAULT_IDLE_INTERVAL,
    ) -> None:
        """
        :param processor: Called with each dequeued invocation; returns the rendezvous result.
        :param rejection_handler: Called when the processor rejects a trigger.
        :param name: Name used in lifecycle log messages.
        :param log: Logger to use instead of the module logger.
        :param idle_interval: Seconds to back off when the queue is empty.
        """
        if idle_interval <= 0:
            raise ValueError("idle_interval must be positive")
        self._processor = processor
        self._rejection_handler = rejection_handler
        self._name = name
        self._logger = log or logger
        self._idle_interval = idle_interval
        self._queue = InvocationQueue()
        self._lock = threading.Lock()
        self._status = DispatcherStatus.STOPPED
        self._token: Optional[_CancellationToken] = None
        self._future: Optional[Future] = None
        self._worker_ident: Optional[int] = None

    @property
    def status(self) -> DispatcherStatus:
        with self._lock:
            return self._status

    @property
    def future(self) -> Optional[Future]:
        """Future of the current (or last) run of the worker loop."""
        return self._future

    @property
    def pending(self) -> int:
        """Number of invocations waiting in the queue."""
        return len(self._queue)

    def in_worker(self) -> bool:
        """True if called from the thread currently running the worker loop."""
        return self._worker_ident is not None and threading.get_ident() == self._worker_ident

    def submit(self, trigger: Hashable, args: Tuple = (), rendezvous: Optional[Rendezvous] = None) -> int:
        """
        Enqueue a fire request. Arguments are not validated here.

        :return: The sequence number assigned to the request.
        """
        invocation = self._queue.enqueue(trigger, args, rendezvous)
        if rendezvous is not None:
            rendezvous.attach(invocation.sequence)
        self._logger.debug("Queued trigger [%s] with sequence %d", trigger, invocation.sequence)
        return invocation.sequence

    def start(self, executor: Optional[Executor] = None) -> Future:
        """
        Start the worker loop, tearing down any previous run first.

        :param executor: Where to run the loop; a dedicated daemon thread is used if None.
        :return: A future that completes when the loop ends, carrying any fatal error.
        :raises StateQueueError: If called from the worker thread.
        """
        if self.in_worker():
            raise StateQueueError("A state machine cannot be restarted from its own dispatcher thread")
        with self._lock:
            previous_token, previous_future = self._token, self._future
        self._teardown(previous_token, previous_future)

        token = _CancellationToken()
        with self._lock:
            self._token = token
            self._status = DispatcherStatus.RUNNING
            if executor is not None:
                self._future = executor.submit(self._run, token)
            else:
                self._future = self._start_thread(token)
            return self._future

    def stop(self) -> None:
        """
        Request the worker loop to stop. The invocation in progress completes;
        queued invocations are left unprocessed.
        """
        with self._lock:
            if self._token is None or self._status is DispatcherStatus.STOPPED:
                return
            self._token.cancel()
            self._status = DispatcherStatus.STOPPING
        self._logger.info("State machine named [%s] is stopping", self._name)

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the current run of the worker loop to end.

        :return: True if the loop has ended.
        """
        future = self._future
        if future is None:
            return True
        done, _ = wait_futures([future], timeout=timeout)
        return bool(done)

    def _teardown(self, token: Optional[_CancellationToken], future: Optional[Future]) -> None:
        if token is None:
            return
        token.cancel()
        if future is not None:
            wait_futures([future])

    def _start_thread(self, token: _CancellationToken) -> Future:
        future: Future = Future()

        def host() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                self._run(token)
            except BaseException as error:
                future.set_exception(error)
            else:
                future.set_result(None)

        thread = threading.Thread(target=host, name=f"statequeue-{self._name or 'dispatcher'}", daemon=True)
        thread.start()
        return future

    def _run(self, token: _CancellationToken) -> None:
        self._worker_ident = threading.get_ident()
        self._logger.info("State machine named [%s] is started", self._name)
        try:
            while not token.cancelled:
                invocation = self._queue.dequeue()
                if invocation is None:
                    token.wait(self._idle_interval)
                    continue
                self._dispatch(invocation, token)
        finally:
            with self._lock:
                if self._token is token:
                    self._status = DispatcherStatus.STOPPED
                if self._worker_ident == threading.get_ident():
                    self._worker_ident = None
            self._logger.info("State machine named [%s] is stopped", self._name)

    def _dispatch(self, invocation: QueuedInvocation, token: _CancellationToken) -> None:
        self._logger.debug("Dispatching trigger [%s] with sequence %d", invocation.trigger, invocation.sequence)
        rendezvous = invocation.rendezvous
        try:
            try:
                result = self._processor(invocation)
            except InvalidTriggerError as rejection:
                self._logger.info(
                    "Trigger [%s] is not valid in current state [%s]", invocation.trigger, rejection.state
                )
                if self._rejection_handler is not None:
                    self._rejection_handler(invocation, rejection)
                if rendezvous is not None:
                    rendezvous.set_exception(rejection)
            else:
                if rendezvous is not None:
                    rendezvous.set_result(result)
        except Exception as error:
            self._logger.exception(
                "An unexpected error occurs while dispatching trigger [%s] with sequence %d",
                invocation.trigger,
                invocation.sequence,
            )
            token.cancel()
            if rendezvous is not None:
                rendezvous.set_exception(error)
            raise FatalDispatchError(invocation.trigger, invocation.sequence, error) from error

        if rendezvous is not None:
            self._await_release(rendezvous, token)

    def _await_release(self, rendezvous: Rendezvous, token: _CancellationToken) -> None:
        while not rendezvous.wait_released(self._idle_interval):
            if token.cancelled:
                return
