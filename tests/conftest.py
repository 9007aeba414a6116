import pytest

from promptsite.app import create_app
from tests.fakes import FakeGateway, StubConfig


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(gateway):
    return create_app(StubConfig, gateway=gateway)


@pytest.fixture
def client(app):
    return app.test_client()
