"""
Tests for core/bootstrap.py and config.py - Application Bootstrap.
"""
import dataclasses

import pytest

import config as config_module
from config import Config, CryptConfig, get_config, reload_config
from core.bootstrap import create_container
from core.errors import ConfigError
from db import ChainedMonitor, SqlAlchemyExecutor
from di import ProtectedKeyError, ServiceProvider
from events import Dispatcher
from security import AesGcmCipher, BCryptHandler, Crypt, FernetCipher, Pbkdf2Handler


class TestCreateContainer:
    """Tests for the default container wiring."""

    def test_config_is_protected(self, test_config):
        """Test the configuration cannot be replaced."""
        container = create_container(test_config)

        assert container.get("config") is test_config
        assert container.is_protected("config")
        with pytest.raises(ProtectedKeyError):
            container.set("config", Config())

    def test_dispatcher_shared_and_aliased(self, test_config):
        """Test the dispatcher is one shared instance under two keys."""
        container = create_container(test_config)

        dispatcher = container.get("dispatcher")
        assert isinstance(dispatcher, Dispatcher)
        assert container.get(Dispatcher) is dispatcher

    def test_monitor(self, test_config):
        """Test the query monitor chain."""
        monitor = create_container(test_config).get("monitor")

        assert isinstance(monitor, ChainedMonitor)
        assert len(monitor.monitors) == 1

    def test_password_handler(self, test_config):
        """Test the bcrypt handler uses the configured rounds."""
        handler = create_container(test_config).get("password_handler")

        assert isinstance(handler, BCryptHandler)
        assert handler.rounds == 4

    def test_other_password_handler(self, test_config):
        """Test other handlers are created by name."""
        test_config.auth.password_handler = "pbkdf2"

        handler = create_container(test_config).get("password_handler")

        assert isinstance(handler, Pbkdf2Handler)

    def test_crypt_generates_key(self, test_config):
        """Test a key is generated when none is configured."""
        crypt = create_container(test_config).get("crypt")

        assert isinstance(crypt, Crypt)
        assert isinstance(crypt.cipher, FernetCipher)
        assert crypt.decrypt(crypt.encrypt("secret")) == "secret"

    def test_crypt_uses_configured_key(self, test_config):
        """Test a configured key and cipher are used."""
        key = AesGcmCipher().generate_key()
        config = dataclasses.replace(test_config, crypt=CryptConfig(cipher="aes-gcm", key=key.private))

        crypt = create_container(config).get("crypt")

        assert isinstance(crypt.cipher, AesGcmCipher)
        assert crypt.get_key() == key

    def test_database(self, test_config):
        """Test the executor is wired to the monitor and dispatcher."""
        container = create_container(test_config)
        db = container.get("db")

        assert isinstance(db, SqlAlchemyExecutor)
        assert db.table_prefix == "jos_"
        assert db.monitor is container.get("monitor")
        assert db.get_dispatcher() is container.get("dispatcher")
        assert container.get("db") is db
        assert not db.connected

    def test_database_connect_event(self, test_config):
        """Test connect events reach listeners on the shared dispatcher."""
        container = create_container(test_config)
        seen = []
        container.get("dispatcher").add_listener("onAfterConnect", lambda e: seen.append(e.executor))

        db = container.get("db")
        db.fetch_value("SELECT 1")
        db.disconnect()

        assert seen == [db]

    def test_extra_providers(self, test_config):
        """Test additional providers run after the defaults."""

        class GreetingProvider(ServiceProvider):
            def register(self, container):
                container.share("greeting", lambda c: f"Hello from {c.get('config').app_name}")

        container = create_container(test_config, providers=[GreetingProvider()])

        assert container.get("greeting") == "Hello from Tessera"

    def test_invalid_config_rejected(self, test_config):
        """Test invalid configuration fails fast."""
        test_config.auth.bcrypt_rounds = 2

        with pytest.raises(ConfigError) as exc_info:
            create_container(test_config)

        assert exc_info.value.config_key == "AUTH_BCRYPT_ROUNDS"


class TestConfig:
    """Tests for environment-driven configuration."""

    def test_environment_values(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("DATABASE_URL", "sqlite:///app.db")
        monkeypatch.setenv("DATABASE_TABLE_PREFIX", "app_")
        monkeypatch.setenv("AUTH_BCRYPT_ROUNDS", "10")
        monkeypatch.setenv("CRYPT_CIPHER", "aes-gcm")

        config = Config()

        assert config.database.url == "sqlite:///app.db"
        assert config.database.table_prefix == "app_"
        assert config.auth.bcrypt_rounds == 10
        assert config.crypt.cipher == "aes-gcm"

    def test_defaults(self, monkeypatch):
        """Test defaults without environment variables."""
        for name in ("DATABASE_URL", "DATABASE_TABLE_PREFIX", "AUTH_BCRYPT_ROUNDS", "CRYPT_CIPHER", "CRYPT_KEY"):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.database.url == "sqlite:///:memory:"
        assert config.auth.bcrypt_rounds == 12
        assert config.auth.users_table == "#__users"
        assert config.crypt.cipher == "fernet"

    def test_unsupported_cipher(self, test_config):
        """Test unknown ciphers fail validation."""
        test_config.crypt.cipher = "rot13"

        with pytest.raises(ConfigError) as exc_info:
            test_config.validate()

        assert exc_info.value.suggestions

    def test_to_dict_hides_secrets(self, test_config):
        """Test the key and database URL are not exported."""
        test_config.crypt.key = "secret-key"

        data = test_config.to_dict()

        assert data["crypt"] == {"cipher": "fernet", "key_configured": True}
        assert "url" not in data["database"]
        assert "secret-key" not in str(data)

    def test_singleton(self, monkeypatch):
        """Test get_config caches until reloaded."""
        monkeypatch.setattr(config_module, "_config", None)
        monkeypatch.setenv("APP_NAME", "First")
        first = reload_config()

        assert get_config() is first
        assert first.app_name == "First"

        monkeypatch.setenv("APP_NAME", "Second")
        assert reload_config().app_name == "Second"
