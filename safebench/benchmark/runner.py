"""Benchmark runner for timing image decodes under a time budget.

This module provides the BenchmarkRunner class, which decodes the selected
candidates one at a time (smallest first) with a per-image timeout and an
aggregate time budget, recording one BenchmarkSample per attempt.
"""

import concurrent.futures
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

from safebench.benchmark.models import (
    BenchmarkSample,
    FailureReason,
    ImageCandidate,
    RunResult,
)
from safebench.config import BenchmarkBudget
from safebench.image_info import decode_image

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, BenchmarkSample], None]


class BenchmarkRunner:
    """Decodes candidates in order and records timings.

    Each decode runs on its own daemon thread. If it does not finish within
    the per-image timeout the thread is abandoned and a DECODE_TIMEOUT
    sample is recorded; the abandoned decode may keep using CPU and memory
    until it finishes on its own, since Python threads cannot be killed.

    Usage:
        runner = BenchmarkRunner()
        result = runner.run(selected, BenchmarkBudget(1.0, 10.0))
    """

    def __init__(
        self,
        decoder: Callable = decode_image,
        revalidate: Optional[Callable[[ImageCandidate], bool]] = None,
        progress: Optional[ProgressCallback] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """Initialize the benchmark runner.

        Args:
            decoder: Callable taking a path; raises DecodeFailure on error.
            revalidate: Optional check run right before each decode. A
                candidate failing it is skipped without a sample.
            progress: Optional callback (index, total, sample) after each sample.
            clock: Monotonic clock in seconds.
        """
        self.decoder = decoder
        self.revalidate = revalidate
        self.progress = progress
        self._clock = clock

    def run(
        self,
        selected: Sequence[ImageCandidate],
        budget: BenchmarkBudget,
        cancel_event: Optional[threading.Event] = None,
    ) -> RunResult:
        """Benchmark each candidate in order until done or out of budget.

        Args:
            selected: Candidates sorted smallest-first.
            budget: Per-image timeout and total time budget.
            cancel_event: Optional event; when set, no further decode starts.

        Returns:
            RunResult with samples in attempt order. incomplete is True when
            the budget ran out or the run was cancelled.
        """
        samples: list[BenchmarkSample] = []
        incomplete = False
        cancelled = False
        total = len(selected)
        start = self._clock()

        for index, candidate in enumerate(selected):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"Benchmark cancelled after {len(samples)} of {total} images")
                cancelled = True
                incomplete = True
                break

            if self.revalidate is not None and not self.revalidate(candidate):
                logger.info(f"Skipping {candidate.path}: changed since selection")
                continue

            sample = self._benchmark_one(candidate, budget.per_image_timeout_sec)
            samples.append(sample)
            if self.progress is not None:
                self.progress(index, total, sample)

            elapsed = self._clock() - start
            if elapsed > budget.total_time_budget_sec:
                incomplete = True
                logger.warning(
                    f"Time budget of {budget.total_time_budget_sec:.1f}s exhausted after "
                    f"{len(samples)} of {total} images"
                )
                break

        return RunResult(
            samples=tuple(samples),
            incomplete=incomplete,
            cancelled=cancelled,
            elapsed_sec=self._clock() - start,
        )

    def _benchmark_one(self, candidate: ImageCandidate, timeout_sec: float) -> BenchmarkSample:
        """Decode one candidate and turn the outcome into a sample."""
        attempt_start = self._clock()
        try:
            duration = self._decode_with_timeout(candidate, timeout_sec)
        except concurrent.futures.TimeoutError:
            logger.warning(f"Decode of {candidate.path} exceeded {timeout_sec:.1f}s, abandoning")
            return BenchmarkSample(
                candidate=candidate,
                decode_duration_micros=_to_micros(self._clock() - attempt_start),
                succeeded=False,
                failure_reason=FailureReason.DECODE_TIMEOUT,
                error_message=f"Decode exceeded {timeout_sec}s",
            )
        except Exception as e:
            logger.warning(f"Decode failed for {candidate.path}: {e}")
            return BenchmarkSample(
                candidate=candidate,
                decode_duration_micros=_to_micros(self._clock() - attempt_start),
                succeeded=False,
                failure_reason=FailureReason.DECODE_FAILURE,
                error_message=str(e),
            )

        logger.debug(f"Decoded {candidate.path} in {duration * 1000:.1f}ms")
        return BenchmarkSample(
            candidate=candidate,
            decode_duration_micros=_to_micros(duration),
            succeeded=True,
        )

    def _decode_with_timeout(self, candidate: ImageCandidate, timeout_sec: float) -> float:
        """Run the decoder on a daemon thread and wait at most timeout_sec.

        Returns:
            Decode duration in seconds, measured on the worker.

        Raises:
            concurrent.futures.TimeoutError: The decode did not finish in time.
            Exception: Whatever the decoder raised.
        """
        future: concurrent.futures.Future = concurrent.futures.Future()

        def work():
            future.set_running_or_notify_cancel()
            started = self._clock()
            try:
                self.decoder(candidate.path)
            except Exception as e:
                future.set_exception(e)
            else:
                future.set_result(self._clock() - started)

        thread = threading.Thread(
            target=work,
            name=f"safebench-decode-{Path(candidate.path).name}",
            daemon=True,
        )
        thread.start()
        return future.result(timeout=timeout_sec)


def _to_micros(seconds: float) -> int:
    return max(0, int(round(seconds * 1_000_000)))
