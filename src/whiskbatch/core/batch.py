"""Sequential batch queue for multi-prompt generation runs.

A batch run takes the raw prompt editor text, splits it into prompts and
generates them strictly one after another:

1. Before every task except the first, wait ``delay_ms`` milliseconds.
2. Append a pending :class:`GenerationTask` placeholder to the result feed.
3. Call the generate function once for the prompt.
4. On success, replace the placeholder in place with the returned images.
   On failure, mark the placeholder as an error with a readable message.
5. Publish progress (``completed/total``).

Cancellation is cooperative: :class:`CancellationToken` is checked at each
task boundary, so a stop request lets the in-flight task finish and prevents
the next one from starting.  A run only reports ``finished`` when every task
ran; a stopped run ends with ``completed < total``.

The pacing delay is the only rate limiting; there is no retry or backoff and
never more than one generation call in flight.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from .config import DEFAULT_REQUEST_DELAY_MS, MAX_REQUEST_DELAY_MS, MIN_REQUEST_DELAY_MS
from .errors import UpstreamError
from .images import GeneratedImage, extract_generated_images

logger = logging.getLogger(__name__)

PROMPT_DELIMITER = "---"


def split_prompts(raw: str) -> list[str]:
    """Split prompt editor text on ``---`` into trimmed, non-empty prompts."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(PROMPT_DELIMITER) if part.strip()]


class TaskStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(eq=False)
class GenerationTask:
    """One prompt of a batch run.

    Created pending, then mutated exactly once to success or error.
    """

    id: str
    prompt: str
    status: TaskStatus = TaskStatus.PENDING
    result_images: list[GeneratedImage] = field(default_factory=list)
    error_message: str | None = None

    def succeed(self, images: list[GeneratedImage]) -> None:
        self.status = TaskStatus.SUCCESS
        self.result_images = images

    def fail(self, message: str) -> None:
        self.status = TaskStatus.ERROR
        self.error_message = message


FeedItem = GenerationTask | GeneratedImage


class CancellationToken:
    """Stop flag shared between the run loop and the stop button.

    Only ever flips from ``False`` to ``True``.
    """

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class BatchRun:
    """Live state of one batch run.

    Attributes:
        prompts: Prompts in submission order
        tasks: Tasks started so far, in submission order
        completed: Number of tasks that reached success or error
        finished: True once every task ran ("queue finished")
        stopped: True if the run ended early because of a stop request
    """

    prompts: list[str]
    tasks: list[GenerationTask] = field(default_factory=list)
    completed: int = 0
    finished: bool = False
    stopped: bool = False

    @property
    def total(self) -> int:
        return len(self.prompts)

    @property
    def percent(self) -> float:
        if not self.total:
            return 0.0
        return self.completed / self.total * 100

    @property
    def done(self) -> bool:
        return self.finished or self.stopped


def describe_failure(error: Exception) -> str:
    """Turn a task failure into the message shown on its card.

    Upstream errors use the ``detail`` field of their JSON body when present,
    otherwise a generic message naming the status code.
    """
    if isinstance(error, UpstreamError):
        try:
            body = json.loads(error.body)
        except (TypeError, ValueError):
            body = None
        if isinstance(body, dict) and body.get("detail"):
            return str(body["detail"])
        return f"Failed to generate image! Error: {error.status_code}"
    return str(error) or "Failed"


def _replace_item(feed: list, item: FeedItem, replacements: list) -> None:
    for index, existing in enumerate(feed):
        if existing is item:
            feed[index : index + 1] = replacements
            return
    feed.extend(replacements)


class BatchQueueController:
    """Run prompts one at a time against a generate function.

    Args:
        generate: Coroutine function taking a prompt and returning the parsed
            generation response.  Non-2xx answers must be raised as
            :class:`UpstreamError`.
        delay_ms: Pause between tasks (100-5000 ms)
        on_unauthorized: Called when a task fails with status 401
        sleep: Awaitable sleep taking seconds (injectable for tests)

    Raises:
        ValueError: If ``delay_ms`` is outside the allowed range
    """

    def __init__(
        self,
        generate: Callable[[str], Awaitable[dict]],
        delay_ms: int = DEFAULT_REQUEST_DELAY_MS,
        on_unauthorized: Callable[[], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if delay_ms < MIN_REQUEST_DELAY_MS or delay_ms > MAX_REQUEST_DELAY_MS:
            raise ValueError(
                f"Request delay must be {MIN_REQUEST_DELAY_MS}-{MAX_REQUEST_DELAY_MS} ms, "
                f"got {delay_ms}"
            )
        self.generate = generate
        self.delay_ms = delay_ms
        self.on_unauthorized = on_unauthorized
        self._sleep = sleep

    async def run(
        self,
        prompts: list[str],
        feed: list | None = None,
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[BatchRun]:
        """Process *prompts* sequentially, yielding the run after each change.

        The same :class:`BatchRun` object is yielded when the run starts, when
        each task's placeholder is added, after each task completes and once
        more when the run ends.

        Args:
            prompts: Prompts in submission order
            feed: Result feed that placeholders and images are written to
            cancel: Stop flag checked before each task
        """
        feed = feed if feed is not None else []
        cancel = cancel or CancellationToken()
        run = BatchRun(prompts=list(prompts))

        logger.info(f"Starting batch run of {run.total} prompt(s)")
        yield run

        for index, prompt in enumerate(run.prompts):
            if cancel.cancelled:
                break
            if index > 0:
                await self._sleep(self.delay_ms / 1000)
                if cancel.cancelled:
                    break

            task = GenerationTask(id=uuid.uuid4().hex, prompt=prompt)
            run.tasks.append(task)
            feed.append(task)
            yield run

            await self._process(task, feed)

            run.completed += 1
            logger.info(
                f"Task {run.completed}/{run.total} {task.status.value}: {prompt[:60]!r}"
            )
            yield run

        run.finished = run.completed == run.total
        run.stopped = not run.finished
        if run.stopped:
            logger.info(f"Batch run stopped after {run.completed}/{run.total} task(s)")
        else:
            logger.info("Batch run finished")
        yield run

    async def _process(self, task: GenerationTask, feed: list) -> None:
        try:
            result = await self.generate(task.prompt)
            images = extract_generated_images(result, task.id, task.prompt)
        except UpstreamError as e:
            if e.status_code == 401 and self.on_unauthorized is not None:
                self.on_unauthorized()
            task.fail(describe_failure(e))
        except Exception as e:
            logger.error(f"Task {task.id} failed: {e}", exc_info=True)
            task.fail(describe_failure(e))
        else:
            task.succeed(images)
            _replace_item(feed, task, images)
