"""
Session registry: one Session per target, kept for the life of the backend
"""
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ...core.client import AuthResult, ClientConfig, Session
from ...core.constants import DEFAULT_CONNECT_TIMEOUT
from ...core.exceptions import NoSessionError
from ...core.interfaces import ConnectionFactory
from ...core.logging import get_logger
from ..models import Credentials, Target

logger = get_logger(__name__)


class SessionRegistry:
    """
    Keyed store of sessions.

    Sessions are created lazily and never dropped: a session whose login
    failed stays registered so the next authentication reuses it.
    Only the backend thread touches the registry.
    """

    def __init__(
        self,
        factory: Optional[ConnectionFactory] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self.factory = factory
        self.connect_timeout = connect_timeout
        self._sessions: Dict[str, Session] = {}

    @staticmethod
    def key_for(target: Target) -> str:
        return target.key

    def __contains__(self, target: Target) -> bool:
        return self.key_for(target) in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def _config_for(self, target: Target, credentials: Credentials) -> ClientConfig:
        return ClientConfig(
            host=target.address,
            user=credentials.username,
            port=target.port,
            password=credentials.password,
            root_password=credentials.root_password,
            timeout=self.connect_timeout,
        )

    def get_or_create(self, target: Target, credentials: Credentials) -> Session:
        """Return the target's session, creating it or refreshing its credentials"""
        key = self.key_for(target)
        config = self._config_for(target, credentials)
        session = self._sessions.get(key)

        if session is None:
            session = Session(config, factory=self.factory)
            self._sessions[key] = session
            logger.debug(f"Registered session {key}")
        else:
            session.config = config

        return session

    def get(self, target: Target) -> Session:
        """
        Look up the target's session.

        Raises:
            NoSessionError: Nothing was registered for the target
        """
        session = self._sessions.get(self.key_for(target))
        if session is None:
            raise NoSessionError(f"No session for {target}")
        return session

    def authenticate(self, target: Target, credentials: Credentials) -> AuthResult:
        """Log one target in, registering its session first if needed"""
        session = self.get_or_create(target, credentials)
        result = session.authenticate()
        logger.info(f"Authentication for {target}: {result.outcome.value}")
        return result

    def iter_authenticate(
        self, targets: Iterable[Target], credentials: Credentials
    ) -> Iterator[Tuple[Target, AuthResult]]:
        """Authenticate targets one after another, yielding each result as it lands"""
        for target in targets:
            yield target, self.authenticate(target, credentials)

    def authenticate_all(
        self, targets: Iterable[Target], credentials: Credentials
    ) -> List[Tuple[Target, AuthResult]]:
        """Authenticate every target in turn; one result per target"""
        return list(self.iter_authenticate(targets, credentials))

    def close_all(self) -> None:
        for key, session in self._sessions.items():
            logger.debug(f"Closing session {key}")
            session.close()
