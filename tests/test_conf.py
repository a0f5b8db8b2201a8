"""Tests for CryptConfig."""
import pytest
from pydantic import ValidationError

from secconf.conf import CryptConfig, default_endpoint

_ENV = (
    "CRYPT_BACKEND", "CRYPT_ENDPOINT", "CRYPT_KEYRING", "CRYPT_SECRET_KEYRING",
    "CRYPT_PASSPHRASE", "CRYPT_PASSPHRASE_ATTEMPTS", "CRYPT_NODE_ROOT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every CRYPT_* variable and pin HOME."""
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", "/home/tester")
    return monkeypatch


class TestDefaults:
    """Defaults when the environment sets nothing."""

    def test_from_empty_env(self, clean_env):
        """Test every field falls back to its default."""
        config = CryptConfig.from_env()
        assert config.backend == "consul"
        assert config.endpoint == ""
        assert config.keyring == "/home/tester/.gnupg/pubring.gpg"
        assert config.secret_keyring == "/home/tester/.gnupg/secring.gpg"
        assert config.passphrase is None
        assert config.passphrase_attempts == 3
        assert config.node_root == "secure/storage"

    @pytest.mark.parametrize("backend,endpoint", [
        ("consul", "127.0.0.1:8500"),
        ("etcd", "http://127.0.0.1:4001"),
    ])
    def test_backend_endpoint(self, backend, endpoint):
        """Test each backend has a local default endpoint."""
        assert default_endpoint(backend) == endpoint

    def test_unknown_backend_endpoint(self):
        """Test an unknown backend has no default endpoint."""
        with pytest.raises(ValueError):
            default_endpoint("zookeeper")


class TestFromEnv:
    """Values read from CRYPT_* variables."""

    def test_overrides(self, clean_env):
        """Test environment values replace the defaults."""
        clean_env.setenv("CRYPT_BACKEND", "ETCD")
        clean_env.setenv("CRYPT_ENDPOINT", "http://etcd:2379")
        clean_env.setenv("CRYPT_KEYRING", "${HOME}/keys/pub.asc")
        clean_env.setenv("CRYPT_PASSPHRASE", "hunter2")
        clean_env.setenv("CRYPT_PASSPHRASE_ATTEMPTS", "5")
        config = CryptConfig.from_env()
        assert config.backend == "etcd"
        assert config.endpoint == "http://etcd:2379"
        assert config.keyring == "/home/tester/keys/pub.asc"
        assert config.passphrase.get_secret_value() == "hunter2"
        assert config.passphrase_attempts == 5

    def test_passphrase_not_in_repr(self, clean_env):
        """Test the passphrase is masked in the repr."""
        clean_env.setenv("CRYPT_PASSPHRASE", "hunter2")
        assert "hunter2" not in repr(CryptConfig.from_env())

    def test_invalid_backend(self, clean_env):
        """Test an unsupported backend fails validation."""
        clean_env.setenv("CRYPT_BACKEND", "zookeeper")
        with pytest.raises(ValidationError):
            CryptConfig.from_env()

    @pytest.mark.parametrize("attempts", ["0", "11", "many"])
    def test_invalid_attempts(self, clean_env, attempts):
        """Test attempts outside 1..10 fail validation."""
        clean_env.setenv("CRYPT_PASSPHRASE_ATTEMPTS", attempts)
        with pytest.raises(ValidationError):
            CryptConfig.from_env()


class TestNodeKey:
    """Prefixing user keys with the storage root."""

    def test_prefix(self):
        """Test the default root is prepended."""
        assert CryptConfig().node_key("team-a/db") == "secure/storage/team-a/db"

    def test_leading_slash(self):
        """Test a leading slash on the key is dropped."""
        assert CryptConfig().node_key("/team-a/db") == "secure/storage/team-a/db"

    def test_custom_root(self):
        """Test slashes around a custom root are stripped."""
        assert CryptConfig(node_root="/vault/").node_key("x") == "vault/x"

    def test_empty_root(self):
        """Test an empty root leaves the key as is."""
        assert CryptConfig(node_root="").node_key("x") == "x"
