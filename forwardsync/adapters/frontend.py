"""
Front end controller

Owns the targets and their presentation state, sends requests to the
backend thread and folds responses back into the matching target.
Responses are matched by target identity, never by arrival order.
"""
import copy
import queue
from typing import Callable, Iterable, List, Optional

from ..core.exceptions import ConfigError, TableNotPushableError
from ..core.logging import get_logger
from ..domain.aliases import empty_mailboxes
from ..domain.models import AuthStatus, Credentials, TableStatus, Target
from ..domain.sync.messages import (
    Authenticate,
    AuthenticationResult,
    FetchFailed,
    FetchTable,
    PushResult,
    PushTable,
    Response,
    Shutdown,
    TableFetched,
)

logger = get_logger(__name__)

Notifier = Callable[[str, str], None]


class Frontend:
    """Request side of the backend conversation"""

    def __init__(
        self,
        targets: Iterable[Target],
        requests: queue.Queue,
        responses: queue.Queue,
        notify: Optional[Notifier] = None,
        fetch_on_login: bool = True,
    ):
        """
        Args:
            targets: Targets this front end manages
            requests: Queue read by the backend
            responses: Queue written by the backend
            notify: Callback (level, message) with level "error" or "success"
            fetch_on_login: Request each table as soon as its login succeeds
        """
        self.targets: List[Target] = list(targets)
        self.requests = requests
        self.responses = responses
        self.notify = notify
        self.fetch_on_login = fetch_on_login

    # ============================================================
    # Lookup
    # ============================================================

    def get_target(self, target: Target) -> Optional[Target]:
        """Return the owned target equal to target (identity fields only)"""
        for owned in self.targets:
            if owned == target:
                return owned
        return None

    def select(self, selector: Optional[str]) -> List[Target]:
        """Targets matching a CLI selector; all of them when selector is None"""
        if selector is None:
            return list(self.targets)
        selected = [target for target in self.targets if target.matches(selector)]
        if not selected:
            raise ConfigError(f"No configured target matches '{selector}'")
        return selected

    @property
    def busy(self) -> bool:
        return any(target.busy for target in self.targets)

    # ============================================================
    # Requests
    # ============================================================

    def login(self, credentials: Credentials, targets: Optional[Iterable[Target]] = None) -> None:
        targets = list(self.targets if targets is None else targets)
        for target in targets:
            target.auth_status = AuthStatus.IN_PROGRESS
        self.requests.put(Authenticate(
            username=credentials.username,
            password=credentials.password,
            root_password=credentials.root_password,
            targets=[target.identity() for target in targets],
        ))

    def request_table(self, target: Target) -> None:
        target.table_status = TableStatus.DOWNLOADING
        self.requests.put(FetchTable(target=target.identity()))

    def push(self, target: Target) -> None:
        """
        Queue the target's current table for upload.

        Raises:
            TableNotPushableError: Some mailbox has no destination; nothing
                is sent to the backend
        """
        empty = empty_mailboxes(target.table)
        if empty:
            raise TableNotPushableError(empty)
        target.table_status = TableStatus.UPLOADING
        self.requests.put(PushTable(target=target.identity(), table=copy.deepcopy(target.table)))

    def shutdown(self) -> None:
        self.requests.put(Shutdown())

    # ============================================================
    # Responses
    # ============================================================

    def apply(self, response: Response) -> Optional[Target]:
        """Fold one response into target state; returns the updated target"""
        target = self.get_target(response.target)
        if target is None:
            logger.warning(f"Response for unknown target {response.target}")
            return None

        if isinstance(response, AuthenticationResult):
            target.auth_status = AuthStatus.from_success(response.success)
            if response.success:
                logger.debug(f"Authentication result for {target}: success")
                target.last_error = ""
                if self.fetch_on_login:
                    self.request_table(target)
            else:
                target.last_error = response.error or "Authentication failed"
                logger.error(f"Authentication failed for {target}: '{response.error or ''}'")
                detail = f": {response.error}" if response.error else ""
                self._notify("error", f"Authentication failed for {target}{detail}")

        elif isinstance(response, TableFetched):
            logger.debug(f"Got {len(response.table)} mailboxes from {target}")
            target.table = response.table
            target.table_status = TableStatus.IDLE
            target.last_error = ""

        elif isinstance(response, FetchFailed):
            target.table_status = TableStatus.UNKNOWN
            target.last_error = response.error
            self._notify("error", f"Couldn't download configuration from {target}: {response.error}")

        elif isinstance(response, PushResult):
            target.table_status = TableStatus.IDLE
            if response.error:
                target.last_error = response.error
                self._notify("error", f"Error uploading data to {target}: {response.error}")
            else:
                target.last_error = ""
                self._notify("success", f"Configuration updated on {target}")

        return target

    def process_pending(self) -> int:
        """Apply every response already queued, without blocking"""
        count = 0
        while True:
            try:
                response = self.responses.get_nowait()
            except queue.Empty:
                return count
            self.apply(response)
            count += 1

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """
        Apply responses until no target is busy.

        Raises:
            TimeoutError: timeout seconds passed without a response
        """
        while self.busy:
            try:
                response = self.responses.get(timeout=timeout)
            except queue.Empty as e:
                raise TimeoutError(f"No response from backend within {timeout}s") from e
            self.apply(response)

    def _notify(self, level: str, message: str) -> None:
        if self.notify:
            self.notify(level, message)
