"""
Single-writer dead-reckoning engine.

The engine owns one MotionEstimator and is the only code that calls into it.
Producers on any thread hand samples to the engine; control commands travel
through the same queue so they are applied in order with the samples:

    sensor thread(s) --submit_*()--> queue.Queue --> consumer --> estimator
    start()/stop()/reset() --------> (same queue)       |
                                                        v
                                      KinematicSnapshot -> listeners,
                                                           latest_snapshot()

The consumer is either a worker thread (run_in_thread()) or the caller
itself (process_pending()), never both.

A SensorSource is any object with subscribe(callback) / unsubscribe(callback).
start() subscribes the engine, stop() and close() unsubscribe it before
returning, so no sample from the source reaches the estimator afterwards.

Example:
    >>> from inertial_dr.engine import DeadReckoningEngine
    >>> with DeadReckoningEngine() as engine:
    ...     engine.start()
    ...     engine.submit_acceleration([0.0, 0.0, 0.0], 0)
    ...     engine.submit_acceleration([0.0, 0.0, 0.0], 20_000_000)
    ...     _ = engine.process_pending()
    ...     engine.latest_snapshot().position
    True
    True
    (0.0, 0.0, 0.0)
"""

import logging
import queue
import threading
from typing import Callable, Dict, List, Optional, Protocol, Union

from inertial_dr.config import EstimatorConfig
from inertial_dr.estimation import DiagnosticObserver, MotionEstimator, create_estimator
from inertial_dr.sensors.types import (
    AccelerationSample,
    DiagnosticEvent,
    InvalidSample,
    KinematicSnapshot,
    OrientationSample,
)

logger = logging.getLogger(__name__)

Sample = Union[OrientationSample, AccelerationSample]
SnapshotListener = Callable[[KinematicSnapshot], None]


class SensorSource(Protocol):
    """Push-style provider of orientation and acceleration samples."""

    def subscribe(self, callback: Callable[[Sample], None]) -> None:
        ...

    def unsubscribe(self, callback: Callable[[Sample], None]) -> None:
        ...


_START = "start"
_STOP = "stop"
_RESET = "reset"
_FLUSH = "flush"
_SHUTDOWN = "shutdown"


class DeadReckoningEngine:
    """
    Queue-fed owner of a MotionEstimator.

    Args:
        config: Estimator parameters. Ignored when `estimator` is given.
        source: Optional SensorSource acquired by start().
        observer: Optional DiagnosticEvent callback, called on the consumer
                  thread (and on the producer thread for samples rejected
                  at submission).
        estimator: Pre-built estimator to drive instead of create_estimator().
        wait_timeout: Seconds start()/stop()/reset()/flush() wait for the
                      worker thread. None waits forever.
    """

    def __init__(
        self,
        config: Optional[EstimatorConfig] = None,
        source: Optional[SensorSource] = None,
        observer: Optional[DiagnosticObserver] = None,
        estimator: Optional[MotionEstimator] = None,
        wait_timeout: Optional[float] = 5.0,
    ):
        self.estimator = estimator if estimator is not None else create_estimator(config, observer)
        self.source = source
        self.wait_timeout = wait_timeout
        self._observer = observer if estimator is None else estimator.observer

        self._queue: "queue.Queue" = queue.Queue()
        self._listeners: List[SnapshotListener] = []
        self._lock = threading.Lock()
        # Held by whichever thread is feeding the estimator; reentrant so a
        # listener may issue a command from inside a drain
        self._consumer_lock = threading.RLock()
        self._snapshot = self.estimator.snapshot()
        self._worker: Optional[threading.Thread] = None
        self._subscribed = False
        self._closed = False

    @property
    def config(self) -> EstimatorConfig:
        return self.estimator.config

    @property
    def is_running(self) -> bool:
        return self.estimator.is_running

    @property
    def diagnostics(self) -> Dict[str, int]:
        """Counts of diagnostic events by kind."""
        return dict(self.estimator.diagnostics)

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    def submit(self, sample: Sample) -> bool:
        """
        Queue an already-built sample. Used as the SensorSource callback.

        Returns:
            False if the engine is closed and the sample was dropped.
        """
        if not isinstance(sample, (OrientationSample, AccelerationSample)):
            raise TypeError(f"Expected OrientationSample or AccelerationSample, got {type(sample)}")
        if self._closed:
            logger.debug("Dropping sample submitted after close() at t=%s ns", sample.timestamp_ns)
            return False
        self._queue.put((sample, None))
        return True

    def submit_orientation(self, values, timestamp_ns: int) -> bool:
        """Queue a rotation-vector reading. Returns False if it was rejected."""
        return self._submit_values(OrientationSample, "invalid_orientation", values, timestamp_ns)

    def submit_acceleration(self, values, timestamp_ns: int) -> bool:
        """Queue a linear-acceleration reading. Returns False if it was rejected."""
        return self._submit_values(AccelerationSample, "invalid_acceleration", values, timestamp_ns)

    def _submit_values(self, sample_cls, kind: str, values, timestamp_ns) -> bool:
        try:
            sample = sample_cls(values=values, timestamp_ns=timestamp_ns)
        except InvalidSample as exc:
            logger.debug("%s rejected at submission: %s", kind, exc)
            if self._observer is not None:
                self._observer(DiagnosticEvent(kind=kind, timestamp_ns=None, detail=str(exc)))
            return False
        return self.submit(sample)

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Acquire the sensor source and begin integrating."""
        self._check_open()
        if self.source is not None and not self._subscribed:
            self.source.subscribe(self.submit)
            self._subscribed = True
        self._command(_START)

    def stop(self) -> None:
        """
        Release the sensor source and stop integrating.

        Returns once the STOP command has been consumed: samples submitted
        before stop() are processed, later ones leave the state untouched.
        """
        self._check_open()
        self._release_source()
        self._command(_STOP)

    def reset(self) -> None:
        """Zero the track, ordered with respect to previously queued samples."""
        self._check_open()
        self._command(_RESET)

    def flush(self) -> None:
        """Block until every sample queued so far has been processed."""
        self._check_open()
        self._command(_FLUSH)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("DeadReckoningEngine is closed")

    def _release_source(self) -> None:
        if self.source is not None and self._subscribed:
            self.source.unsubscribe(self.submit)
            self._subscribed = False

    def _command(self, name: str) -> None:
        done = threading.Event()
        self._queue.put((name, done))

        worker = self._worker
        if worker is None or not worker.is_alive():
            self.process_pending()
        elif threading.current_thread() is worker:
            # Called from a listener; the command runs after the current item
            return
        elif not done.wait(self.wait_timeout):
            raise TimeoutError(f"Engine worker did not process '{name}' within {self.wait_timeout} s")

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    def process_pending(self) -> int:
        """
        Drain the queue on the calling thread.

        Only one thread drains at a time. A caller that finds another drain
        in progress waits for it to finish, by which point its own queued
        items have been handled.

        Returns:
            Number of queue items processed.

        Raises:
            RuntimeError: If a worker thread is consuming the queue.
        """
        worker = self._worker
        if worker is not None and worker.is_alive() and threading.current_thread() is not worker:
            raise RuntimeError("process_pending() cannot run while the worker thread is active")

        count = 0
        with self._consumer_lock:
            while True:
                try:
                    item, done = self._queue.get_nowait()
                except queue.Empty:
                    return count
                if item == _SHUTDOWN:
                    continue
                self._handle(item, done)
                count += 1

    def run_in_thread(self, name: str = "dead-reckoning") -> threading.Thread:
        """Start a daemon worker thread that consumes the queue until close()."""
        self._check_open()
        if self._worker is not None and self._worker.is_alive():
            return self._worker
        self._worker = threading.Thread(target=self._run, name=name, daemon=True)
        self._worker.start()
        return self._worker

    def _run(self) -> None:
        logger.debug("Engine worker started")
        while True:
            item, done = self._queue.get()
            with self._consumer_lock:
                if item == _SHUTDOWN:
                    self.estimator.stop()
                    break
                self._handle(item, done)
        logger.debug("Engine worker stopped")

    def _handle(self, item, done: Optional[threading.Event]) -> None:
        est = self.estimator
        try:
            if isinstance(item, AccelerationSample):
                if est.process_acceleration(item):
                    self._publish()
            elif isinstance(item, OrientationSample):
                est.process_orientation(item)
            elif item == _START:
                est.start()
            elif item == _STOP:
                est.stop()
            elif item == _RESET:
                est.reset()
                self._publish()
        finally:
            if done is not None:
                done.set()

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def latest_snapshot(self) -> KinematicSnapshot:
        """Most recently published snapshot. Never blocks on the writer."""
        with self._lock:
            return self._snapshot

    def add_listener(self, callback: SnapshotListener) -> None:
        """Call `callback(snapshot)` on the consumer thread after each update."""
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: SnapshotListener) -> None:
        with self._lock:
            self._listeners.remove(callback)

    def _publish(self) -> None:
        snap = self.estimator.snapshot()
        with self._lock:
            self._snapshot = snap
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(snap)
            except Exception:
                logger.exception("Snapshot listener %r failed", callback)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """
        Release the sensor source, stop the worker thread and stop the
        estimator. Safe to call twice.

        With a worker, items queued before close() are still handled and the
        worker stops the estimator on its way out. Without one, queued items
        are discarded.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._release_source()
        finally:
            worker = self._worker
            if worker is not None and worker.is_alive():
                self._queue.put((_SHUTDOWN, None))
                if threading.current_thread() is not worker:
                    worker.join(self.wait_timeout)
                    if worker.is_alive():
                        logger.warning(
                            "Engine worker %r did not exit within %s s; it stops the "
                            "estimator when it reaches the shutdown request",
                            worker.name,
                            self.wait_timeout,
                        )
            else:
                with self._consumer_lock:
                    self.estimator.stop()
            logger.debug("Engine closed (diagnostics: %s)", self.diagnostics)

    def __enter__(self) -> "DeadReckoningEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
