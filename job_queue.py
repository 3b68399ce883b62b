"""
Redis-backed job queue and worker pool.

Uses Redis data structures, all keys prefixed with the queue name:
- LIST for pending job ids (LPUSH in, RPOP out = FIFO)
- SET for running job ids
- SET for active job ids (pending or running), used to reject duplicates
- HASH per job holding the serialized request and its delivery attempts
- LIST of JSON result summaries (most recent first, capped)

Delivery is at-least-once: a job whose worker is cancelled or crashes is put
back at the head of the queue until it has been attempted ``max_attempts``
times. The uploaded CV belongs to the queue until the job is finished; every
attempt runs on its own copy of it, so a redelivered job still has its CV.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

import redis.asyncio as aioredis
from redis.asyncio import Redis

from data_models import JobApplicationRequest, PipelineFailure, PipelineResult, PipelineState
from pipeline import remove_cv_file

LOGGER = logging.getLogger(__name__)

QUEUE_NAME = "jobApplications"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
POLL_INTERVAL_SECONDS = 0.5
RESULTS_LIMIT = 1000
ITEM_TTL_SECONDS = 86400 * 7


@dataclass
class QueuedJob:
    """A request together with its delivery bookkeeping."""

    request: JobApplicationRequest
    attempts: int = 0

    @property
    def job_id(self) -> str:
        return self.request.job_id


def stage_attempt_cv(job: QueuedJob) -> JobApplicationRequest:
    """
    Copy the queued CV for one delivery attempt.

    The pipeline deletes the copy when the attempt ends. If the copy cannot
    be made the pipeline reports the missing file at its CV stage.

    Returns:
        The job's request pointing at the attempt copy.
    """
    source = job.request.cv_path
    attempt_cv = source.with_name(f"{source.stem}.attempt{job.attempts}{source.suffix}")
    try:
        shutil.copyfile(source, attempt_cv)
    except OSError as exc:
        LOGGER.error("Could not stage CV for job %s: %s", job.job_id, exc)
    return replace(job.request, cv_path=attempt_cv)


class JobQueue:
    """FIFO queue of application requests kept in Redis."""

    def __init__(
        self,
        redis: Redis,
        name: str = QUEUE_NAME,
        max_attempts: int = 1,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        remove_cv: Callable = remove_cv_file,
    ) -> None:
        """
        Initialize the queue.

        Args:
            redis: Connected client created with ``decode_responses=True``.
            name: Queue name, also the Redis key prefix.
            max_attempts: Deliveries allowed per job before it is abandoned.
            poll_interval: Seconds between polls of an empty queue.
            remove_cv: Deletes the queued CV once the job is finished.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._redis = redis
        self.name = name
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self._remove_cv = remove_cv
        self._pending_key = f"{name}:pending"
        self._running_key = f"{name}:running"
        self._active_key = f"{name}:active"
        self._results_key = f"{name}:results"

    @classmethod
    async def connect(cls, redis_url: str = DEFAULT_REDIS_URL, **kwargs: Any) -> "JobQueue":
        """Connect to Redis and return a queue using that connection."""
        client = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        try:
            await client.ping()
        except Exception as exc:
            LOGGER.error("Failed to connect to Redis at %s: %s", redis_url, exc)
            await client.aclose()
            raise
        LOGGER.info("Job queue connected to Redis")
        return cls(client, **kwargs)

    async def close(self) -> None:
        await self._redis.aclose()

    def _item_key(self, job_id: str) -> str:
        return f"{self.name}:item:{job_id}"

    async def pending_count(self) -> int:
        return await self._redis.llen(self._pending_key)

    async def in_flight_count(self) -> int:
        return await self._redis.scard(self._running_key)

    async def enqueue(self, request: JobApplicationRequest) -> bool:
        """
        Add a request to the queue.

        Returns:
            False if a job with the same id is already pending or running.
        """
        if not await self._redis.sadd(self._active_key, request.job_id):
            LOGGER.warning("Job %s already queued on %s; ignoring duplicate", request.job_id, self.name)
            return False
        item_key = self._item_key(request.job_id)
        await self._redis.hset(item_key, mapping={"request": json.dumps(request.to_dict()), "attempts": 0})
        await self._redis.expire(item_key, ITEM_TTL_SECONDS)
        await self._redis.lpush(self._pending_key, request.job_id)
        LOGGER.info("Queued job %s on %s (%s)", request.job_id, self.name, request.job_url)
        return True

    async def claim(self) -> Optional[QueuedJob]:
        """
        Take the oldest pending job and mark it as running.

        Returns:
            QueuedJob, or None if the queue is empty.
        """
        job_id = await self._redis.rpop(self._pending_key)
        if not job_id:
            return None

        item_key = self._item_key(job_id)
        item = await self._redis.hgetall(item_key)
        if not item:
            LOGGER.warning("Queue item %s not found after claim", job_id)
            await self._redis.srem(self._active_key, job_id)
            return None

        attempts = await self._redis.hincrby(item_key, "attempts", 1)
        await self._redis.sadd(self._running_key, job_id)
        request = JobApplicationRequest.from_dict(json.loads(item["request"]))
        LOGGER.debug("Claimed job %s (attempt %d)", job_id, attempts)
        return QueuedJob(request=request, attempts=int(attempts))

    async def _finish(self, job: QueuedJob, result: PipelineResult) -> None:
        await self._redis.srem(self._running_key, job.job_id)
        await self._redis.lpush(self._results_key, json.dumps(result.to_dict()))
        await self._redis.ltrim(self._results_key, 0, RESULTS_LIMIT - 1)
        await self._redis.delete(self._item_key(job.job_id))
        self._remove_cv(job.request.cv_path)
        await self._redis.srem(self._active_key, job.job_id)

    async def complete(self, job: QueuedJob, result: PipelineResult) -> None:
        """Record the terminal result of a claimed job and drop its CV."""
        await self._finish(job, result)
        LOGGER.info("Job %s finished with status %s", job.job_id, result.status.value)

    async def release(self, job: QueuedJob, reason: str) -> Optional[PipelineResult]:
        """
        Give a claimed job back after its worker stopped without a result.

        Returns:
            None if the job was re-queued, otherwise the failed result recorded
            for a job that ran out of attempts.
        """
        if job.attempts < self.max_attempts:
            LOGGER.warning("Re-queuing job %s after attempt %d: %s", job.job_id, job.attempts, reason)
            await self._redis.srem(self._running_key, job.job_id)
            # RPUSH puts it at the tail, which RPOP serves next.
            await self._redis.rpush(self._pending_key, job.job_id)
            return None

        LOGGER.error("Job %s abandoned after %d attempts: %s", job.job_id, job.attempts, reason)
        result = PipelineResult(
            job_id=job.job_id,
            status=PipelineState.FAILED,
            failure=PipelineFailure(stage=PipelineState.QUEUED, error_type="DeliveryExhausted", message=reason),
        )
        await self._finish(job, result)
        return result

    async def restore_interrupted(self) -> List[str]:
        """
        Move jobs left running by a stopped process back to the pending queue.

        Returns:
            Ids of the restored jobs.
        """
        restored = []
        for job_id in await self._redis.smembers(self._running_key):
            await self._redis.srem(self._running_key, job_id)
            await self._redis.rpush(self._pending_key, job_id)
            restored.append(job_id)
            LOGGER.info("Restored interrupted job %s", job_id)
        return restored

    async def join(self) -> None:
        """Wait until every queued job has a result."""
        while await self._redis.scard(self._active_key):
            await asyncio.sleep(self.poll_interval)

    async def results(self) -> List[Dict[str, Any]]:
        """Recent result summaries, most recent first."""
        return [json.loads(entry) for entry in await self._redis.lrange(self._results_key, 0, -1)]


async def worker(queue: JobQueue, orchestrator, name: str, results: List[PipelineResult]) -> None:
    """Process jobs from the queue one at a time until cancelled."""
    while True:
        job = await queue.claim()
        if job is None:
            await asyncio.sleep(queue.poll_interval)
            continue

        LOGGER.info("%s picked up job %s (attempt %d)", name, job.job_id, job.attempts)
        request = stage_attempt_cv(job)
        try:
            result = await orchestrator.run(request)
        except asyncio.CancelledError:
            remove_cv_file(request.cv_path)
            exhausted = await queue.release(job, f"{name} cancelled")
            if exhausted:
                results.append(exhausted)
            raise
        except Exception as exc:
            LOGGER.exception("%s crashed on job %s", name, job.job_id)
            remove_cv_file(request.cv_path)
            exhausted = await queue.release(job, f"{type(exc).__name__}: {exc}")
            if exhausted:
                results.append(exhausted)
            continue
        await queue.complete(job, result)
        results.append(result)


async def run_workers(queue: JobQueue, orchestrator, concurrency: int = 1) -> List[PipelineResult]:
    """
    Run a pool of workers until the queue is drained.

    Args:
        queue: Queue holding the jobs to process.
        orchestrator: PipelineOrchestrator shared by all workers.
        concurrency: Number of jobs processed at the same time.

    Returns:
        Results of the jobs finished by this pool.
    """
    results: List[PipelineResult] = []
    tasks = [
        asyncio.create_task(worker(queue, orchestrator, f"worker-{index}", results))
        for index in range(1, max(1, concurrency) + 1)
    ]
    try:
        await queue.join()
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    return results
