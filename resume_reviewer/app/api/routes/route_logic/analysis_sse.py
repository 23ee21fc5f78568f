import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable

from resume_reviewer.app.models.resume import ResumeRecord
from resume_reviewer.app.pipeline.errors import PipelineError
from resume_reviewer.app.pipeline.orchestrator import StatusCallback

log = logging.getLogger(__name__)

PipelineRun = Callable[[StatusCallback], Awaitable[ResumeRecord]]

# Strong references to running pipeline tasks; the event loop only keeps weak ones.
_running_tasks: set[asyncio.Task] = set()


def create_sse_message(event: str, data: str) -> str:
    """Formats a message for Server-Sent Events (SSE).

    Args:
        event (str): The event name.
        data (str): The data to send. Can be multi-line.

    Returns:
        str: The formatted SSE message string.

    """
    # An SSE message can have multiple data lines but must end with two newlines.
    if "\n" in data:
        data_payload = "\n".join(f"data: {line}" for line in data.splitlines())
    else:
        data_payload = f"data: {data}"

    return f"event: {event}\n{data_payload}\n\n"


def create_sse_progress_message(status_text: str) -> str:
    """Creates an SSE 'progress' message carrying a pipeline status string."""
    _msg = f"create_sse_progress_message with message: {status_text}"
    log.debug(_msg)
    return create_sse_message(event="progress", data=json.dumps({"status": status_text}))


def create_sse_error_message(status_text: str) -> str:
    """Creates an SSE 'error' message carrying the user-facing failure status."""
    return create_sse_message(event="error", data=json.dumps({"status": status_text}))


def create_sse_done_message(record: ResumeRecord) -> str:
    """Creates an SSE 'done' message carrying the populated record."""
    return create_sse_message(event="done", data=record.to_json())


def create_sse_close_message() -> str:
    """Creates an SSE 'close' message.

    Returns:
        str: The formatted SSE 'close' message.

    """
    return create_sse_message(event="close", data="stream complete")


async def _pipeline_task(run: PipelineRun, message_queue: asyncio.Queue) -> None:
    """Runs the pipeline, forwarding status updates and the outcome to the queue."""

    async def on_status(status_text: str) -> None:
        await message_queue.put(create_sse_progress_message(status_text))

    try:
        record = await run(on_status)
        await message_queue.put(create_sse_done_message(record))
    except PipelineError as e:
        _msg = f"Streaming analysis failed: {e!s}"
        log.warning(_msg)
        await message_queue.put(create_sse_error_message(e.status_text))
    except Exception as e:
        _msg = f"Unexpected error during streaming analysis: {e!s}"
        log.exception(_msg)
        await message_queue.put(create_sse_error_message(PipelineError.status_text))
    finally:
        await message_queue.put(create_sse_close_message())


async def _yield_messages_from_queue(
    message_queue: asyncio.Queue,
    main_task: asyncio.Task,
) -> AsyncGenerator[str, None]:
    """Yields messages from the queue until a 'close' event is received."""
    while True:
        try:
            message = await asyncio.wait_for(message_queue.get(), timeout=1)
            yield message
            if "event: close" in message:
                break
        except asyncio.TimeoutError:
            if main_task.done() and message_queue.empty():
                log.debug("Pipeline task finished and queue is empty. Closing stream.")
                break


async def analysis_sse_generator(run: PipelineRun) -> AsyncGenerator[str, None]:
    """Generates SSE events for one pipeline run.

    The pipeline runs in a background task and reports through a queue: a
    `progress` event per status string, then `done` with the record JSON or
    `error` with the failure status, then `close`.

    Args:
        run (PipelineRun): Starts the pipeline with the given status callback.

    Yields:
        str: Formatted SSE message strings.

    Notes:
        1. If the client disconnects, the stream stops but the pipeline task is left
           to finish, so a run that passed the pending-record checkpoint still stores
           its report.

    """
    message_queue: asyncio.Queue = asyncio.Queue()
    main_task = asyncio.create_task(_pipeline_task(run, message_queue))
    _running_tasks.add(main_task)
    main_task.add_done_callback(_running_tasks.discard)

    try:
        async for message in _yield_messages_from_queue(message_queue, main_task):
            yield message
    except GeneratorExit:
        _msg = "SSE stream closed by client before the analysis finished."
        log.warning(_msg)
        raise
    finally:
        _msg = "SSE generator finished."
        log.debug(_msg)
