"""
Tessera - Authentication Chain

Tries pluggable authentication strategies in registration order until
one of them identifies a user, keeping the outcome of every strategy
that was tried.

Features:
- Named strategies, optionally restricted per attempt
- Per-strategy status tracking
- Audit logging and OpenTelemetry spans

Usage:
    auth = Authentication()
    auth.add_strategy("local", LocalStrategy(request_data, {"alice": hashed}))
    auth.add_strategy("database", DatabaseStrategy(request_data, executor))

    username = auth.authenticate()
    if username is None:
        print(auth.get_results())
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple, Union

import structlog
from opentelemetry import trace

from security.exceptions import NoStrategiesError, StrategyNotFoundError

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class AuthStatus(IntEnum):
    """Outcome of a single authentication strategy."""

    SUCCESS = 1
    INVALID_CREDENTIALS = 2
    NO_SUCH_USER = 3
    NO_CREDENTIALS = 4
    INCOMPLETE_CREDENTIALS = 5


class AuthenticationStrategy(ABC):
    """A single credential verification method."""

    status: Optional[AuthStatus] = None

    @abstractmethod
    def authenticate(self) -> Optional[str]:
        """
        Attempt to authenticate.

        Returns:
            The authenticated username, or None on failure
        """

    def get_result(self) -> Optional[AuthStatus]:
        """The status of the last authentication attempt."""
        return self.status


class Authentication:
    """Ordered chain of authentication strategies."""

    def __init__(self) -> None:
        self._strategies: Dict[str, AuthenticationStrategy] = {}
        self._results: Dict[str, Optional[AuthStatus]] = {}

    def add_strategy(self, name: str, strategy: AuthenticationStrategy) -> "Authentication":
        self._strategies[name] = strategy
        return self

    def get_strategies(self) -> List[str]:
        return list(self._strategies)

    def authenticate(self, strategies: Optional[Union[str, Sequence[str]]] = None) -> Optional[str]:
        """
        Run the strategies until one returns a username.

        Args:
            strategies: Names of the strategies to try, in order. All
                registered strategies are tried when omitted.

        Returns:
            The username from the first successful strategy, or None

        Raises:
            StrategyNotFoundError: If a requested strategy is not registered
            NoStrategiesError: If there is nothing to try
        """
        selected = self._select(strategies)
        self._results = {}

        with tracer.start_as_current_span("auth.authenticate") as span:
            span.set_attribute("auth.strategies", [name for name, _ in selected])

            for name, strategy in selected:
                username = strategy.authenticate()
                result = strategy.get_result()
                self._results[name] = result

                if isinstance(username, str) and username:
                    span.set_attribute("auth.strategy", name)
                    span.set_attribute("auth.success", True)
                    logger.info("Authentication succeeded", strategy=name, username=username)
                    return username

                logger.debug(
                    "Authentication strategy failed",
                    strategy=name,
                    status=result.name if result is not None else None,
                )

            span.set_attribute("auth.success", False)
            logger.info("Authentication failed", strategies=[name for name, _ in selected])
            return None

    def get_results(self) -> Dict[str, Optional[AuthStatus]]:
        """Status of each strategy tried by the last ``authenticate`` call."""
        return dict(self._results)

    def _select(
        self,
        strategies: Optional[Union[str, Sequence[str]]],
    ) -> List[Tuple[str, AuthenticationStrategy]]:
        if isinstance(strategies, str):
            strategies = [strategies]

        if strategies:
            selected = []
            for name in strategies:
                if name not in self._strategies:
                    raise StrategyNotFoundError(name)
                selected.append((name, self._strategies[name]))
        else:
            selected = list(self._strategies.items())

        if not selected:
            raise NoStrategiesError()
        return selected
