"""Fixtures wiring clients to the in-memory broker."""

import pytest
from fakes import FakeBroker, FakeIOLoop, FakeServer

from rabbitmq_messaging import Client, ClientDependencies


@pytest.fixture
def loop():
    return FakeIOLoop()


@pytest.fixture
def server(loop):
    return FakeServer(loop)


@pytest.fixture
def brokers():
    return []


@pytest.fixture
def make_client(loop, server, brokers):
    """Build clients that share one loop and one fake server."""

    def make_broker(ioloop):
        broker = FakeBroker(server, ioloop)
        brokers.append(broker)
        return broker

    dependencies = ClientDependencies(make_ioloop=lambda: loop, make_broker=make_broker)

    def factory(**kwargs):
        return Client(dependencies=dependencies, **kwargs)

    return factory
