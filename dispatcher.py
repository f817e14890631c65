import logging
import queue
import threading

from messages import (
    EditRequest,
    EditResult,
    FetchRequest,
    FetchResult,
    QueryRequest,
    QueryResult,
)

logger = logging.getLogger(__name__)


def failure_message(effect, exc):
    """Result message reporting that the worker for `effect` blew up."""
    text = str(exc) or exc.__class__.__name__
    if isinstance(effect, FetchRequest):
        return FetchResult(generation=effect.generation, error=text)
    if isinstance(effect, EditRequest):
        return EditResult(success=False, field_index=effect.field_index, error=text)
    if isinstance(effect, QueryRequest):
        return QueryResult(sql=effect.sql, error=text)
    raise TypeError(f"no failure message for {effect!r}")


class Dispatcher:
    """Runs effects on short-lived daemon threads.

    Each worker posts exactly one message onto `results`; the render loop
    picks them up with drain() and never blocks on a worker. Handlers that
    share a connection pass `lock`, which lets one worker at a time run.
    """

    def __init__(self, handlers, results=None, lock=None):
        self.handlers = dict(handlers)
        self.results = results if results is not None else queue.Queue()
        self.lock = lock

    def register(self, effect_type, handler):
        self.handlers[effect_type] = handler

    def submit(self, effect):
        handler = self.handlers.get(type(effect))
        if handler is None:
            raise TypeError(f"no handler registered for {type(effect).__name__}")
        t = threading.Thread(
            target=self._run,
            args=(handler, effect),
            name=f"mirador-{type(effect).__name__}",
            daemon=True,
        )
        t.start()
        return t

    def submit_all(self, effects):
        return [self.submit(e) for e in effects]

    def _run(self, handler, effect):
        try:
            if self.lock is None:
                message = handler(effect)
            else:
                with self.lock:
                    message = handler(effect)
        except Exception as e:
            logger.exception("worker for %s failed", type(effect).__name__)
            message = failure_message(effect, e)
        self.results.put(message)

    def drain(self, limit=None):
        """Return every message currently queued (at most `limit`) in arrival order."""
        messages = []
        while limit is None or len(messages) < limit:
            try:
                messages.append(self.results.get_nowait())
            except queue.Empty:
                break
        return messages
