"""
Test configuration for the passive authentication test suite.
"""

import os

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from passive_auth.config import PassiveAuthConfig
from passive_auth.verification.passive_authentication import PassiveAuthenticator
from tests.fixtures.passport_factory import build_record, generate_ec_key, generate_rsa_key


# Test markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "mrz: mark test as MRZ related")
    config.addinivalue_line("markers", "crypto: mark test as cryptographic verification related")


# Collection settings
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "mrz" in str(item.fspath) or "mrz" in item.name.lower():
            item.add_marker(pytest.mark.mrz)
        if "crypto" in str(item.fspath):
            item.add_marker(pytest.mark.crypto)


# Test environment setup
@pytest.fixture(scope="session", autouse=True)
def test_environment_setup():
    """Set up test environment."""
    original_env = os.environ.copy()

    os.environ["PASSIVE_AUTH_ENV"] = "testing"
    os.environ["LOG_LEVEL"] = "DEBUG"

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(scope="session")
def rsa_private_key():
    return generate_rsa_key()


@pytest.fixture(scope="session")
def ec_private_key():
    return generate_ec_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def brainpool_private_key():
    return generate_ec_key(ec.BrainpoolP256R1())


@pytest.fixture
def config():
    return PassiveAuthConfig()


@pytest.fixture
def authenticator(config):
    return PassiveAuthenticator(config)


@pytest.fixture(scope="session")
def rsa_record(rsa_private_key):
    """Authentic TD3 record signed with sha256WithRSAEncryption."""
    return build_record(rsa_private_key)


@pytest.fixture(scope="session")
def ec_record(ec_private_key):
    """Authentic TD3 record signed with ecdsa-with-SHA256."""
    return build_record(ec_private_key, signature_algorithm="ecdsa-with-SHA256")
