"""
Backend request loop

A single worker thread takes requests off a queue and runs them one at a
time, so two pushes never interleave their su sequences or share the
staging file. Every request produces its response(s) before the next one
is read. Nothing is cancelled or timed out once started; a hung remote
shell blocks every later request.
"""
import queue
import threading
from typing import Optional, Tuple

from ...core.exceptions import ForwardSyncError
from ...core.logging import get_logger
from ..models import Credentials
from .messages import (
    Authenticate,
    AuthenticationResult,
    FetchFailed,
    FetchTable,
    PushResult,
    PushTable,
    Request,
    Response,
    Shutdown,
    TableFetched,
)
from .registry import SessionRegistry
from .service import SyncEngine

logger = get_logger(__name__)


class Dispatcher:
    """Translates requests into registry/engine calls and emits responses"""

    def __init__(
        self,
        engine: SyncEngine,
        requests: "queue.Queue[Request]",
        responses: "queue.Queue[Response]",
    ):
        self.engine = engine
        self.registry: SessionRegistry = engine.registry
        self.requests = requests
        self.responses = responses

    def run(self) -> None:
        """Serve requests until a Shutdown arrives, then close every session"""
        logger.debug("Backend loop started")
        try:
            while True:
                request = self.requests.get()
                try:
                    if isinstance(request, Shutdown):
                        break
                    self.handle(request)
                finally:
                    self.requests.task_done()
        finally:
            self.registry.close_all()
            logger.debug("Backend loop stopped")

    def handle(self, request: Request) -> None:
        if isinstance(request, Authenticate):
            self._authenticate(request)
        elif isinstance(request, FetchTable):
            self._fetch(request)
        elif isinstance(request, PushTable):
            self._push(request)
        else:
            logger.error(f"Ignoring unknown request {request!r}")

    def _emit(self, response: Response) -> None:
        self.responses.put(response)

    def _authenticate(self, request: Authenticate) -> None:
        credentials = Credentials(
            username=request.username,
            password=request.password,
            root_password=request.root_password,
        )
        for target in request.targets:
            try:
                result = self.registry.authenticate(target, credentials)
            except Exception as e:
                logger.exception(f"Unexpected error authenticating {target}")
                self._emit(AuthenticationResult(
                    target=target.identity(),
                    success=False,
                    error=f"Unexpected error: {e}",
                ))
                continue
            self._emit(AuthenticationResult(
                target=target.identity(),
                success=result.success,
                error=result.error,
            ))

    def _fetch(self, request: FetchTable) -> None:
        target = request.target
        logger.debug(f"Requested alias table for {target}")
        try:
            table = self.engine.fetch(target)
        except ForwardSyncError as e:
            logger.error(f"Error getting alias table from {target}: {e}")
            self._emit(FetchFailed(target=target.identity(), error=str(e)))
            return
        except Exception as e:
            logger.exception(f"Unexpected error fetching from {target}")
            self._emit(FetchFailed(target=target.identity(), error=f"Unexpected error: {e}"))
            return
        self._emit(TableFetched(target=target.identity(), table=table))

    def _push(self, request: PushTable) -> None:
        target = request.target
        error: Optional[str] = None
        try:
            self.engine.push(target, request.table)
        except ForwardSyncError as e:
            error = str(e)
        except Exception as e:
            logger.exception(f"Unexpected error pushing to {target}")
            error = f"Unexpected error: {e}"
        self._emit(PushResult(target=target.identity(), error=error))


def start_backend(
    engine: SyncEngine, name: str = "forwardsync-backend"
) -> Tuple["queue.Queue[Request]", "queue.Queue[Response]", threading.Thread]:
    """
    Spawn the backend worker.

    Returns:
        (requests, responses, thread). Put a Shutdown on requests to stop it.
    """
    requests: "queue.Queue[Request]" = queue.Queue()
    responses: "queue.Queue[Response]" = queue.Queue()
    dispatcher = Dispatcher(engine, requests, responses)

    thread = threading.Thread(target=dispatcher.run, name=name, daemon=True)
    thread.start()
    return requests, responses, thread
