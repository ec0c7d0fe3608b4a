"""
Tessera - Test Configuration

Pytest fixtures and configuration for all tests.
"""
from typing import Any, Dict, Generator

import pytest

from config import AuthConfig, Config, CryptConfig, DatabaseConfig, Environment
from db import DebugMonitor, SqlAlchemyExecutor
from di import Container
from events import Dispatcher
from security import BCryptHandler


@pytest.fixture
def container() -> Container:
    """Empty root container."""
    return Container()


@pytest.fixture
def dispatcher() -> Dispatcher:
    """Dispatcher without listeners."""
    return Dispatcher()


@pytest.fixture
def password_handler() -> BCryptHandler:
    """bcrypt handler at the minimum work factor, to keep tests fast."""
    return BCryptHandler(rounds=4)


@pytest.fixture
def test_config() -> Config:
    """Configuration independent of the process environment."""
    return Config(
        env=Environment.TESTING,
        debug=False,
        app_name="Tessera",
        database=DatabaseConfig(url="sqlite:///:memory:", table_prefix="jos_", echo=False),
        auth=AuthConfig(bcrypt_rounds=4, users_table="#__users", password_handler="bcrypt"),
        crypt=CryptConfig(cipher="fernet", key=""),
    )


@pytest.fixture
def sample_registry_data() -> Dict[str, Any]:
    """Nested registry data."""
    return {
        "app": {
            "name": "Tessera",
            "debug": False,
        },
        "database": {
            "host": "localhost",
            "port": 5432,
            "options": ["pooling", "ssl"],
        },
        "cache": {
            "ttl": 1.5,
        },
    }


@pytest.fixture
def debug_monitor() -> DebugMonitor:
    """Monitor recording every executed statement."""
    return DebugMonitor()


@pytest.fixture
def executor(debug_monitor, dispatcher) -> Generator[SqlAlchemyExecutor, None, None]:
    """In-memory SQLite executor with a ``jos_`` table prefix."""
    db = SqlAlchemyExecutor(
        "sqlite:///:memory:",
        table_prefix="jos_",
        monitor=debug_monitor,
        dispatcher=dispatcher,
    )
    yield db
    db.disconnect()


@pytest.fixture
def users_table(executor, password_handler) -> SqlAlchemyExecutor:
    """Executor with a populated ``#__users`` table."""
    executor.execute(
        "CREATE TABLE #__users ("
        "username TEXT, password TEXT, email TEXT, phone TEXT)"
    )
    users = [
        ("alice", "wonderland", "alice@example.com", "+1 555 0100"),
        ("bob", "builder", "bob@example.com", "+44 20 7946 0000"),
    ]
    for username, password, email, phone in users:
        executor.execute(
            "INSERT INTO #__users (username, password, email, phone) "
            "VALUES (:username, :password, :email, :phone)",
            {
                "username": username,
                "password": password_handler.hash_password(password),
                "email": email,
                "phone": phone,
            },
        )
    return executor


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "db: marks database tests")
    config.addinivalue_line("markers", "property: marks property-based tests using Hypothesis")
