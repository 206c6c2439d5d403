"""The blocking client on pika's own IOLoop, without a broker."""

import socket

import pytest
from pika.adapters.select_connection import IOLoop

from rabbitmq_messaging import BrokerFailure, Client, CompletionSignal

TIMEOUT = 10


@pytest.fixture
def refused_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        return listener.getsockname()[1]


@pytest.fixture
def client_factory():
    clients = []

    def factory(**kwargs):
        client = Client(**kwargs)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


def test_default_client_runs_on_pika_ioloop(client_factory):
    client = client_factory()

    assert isinstance(client.ioloop, IOLoop)


def test_connect_to_refused_port_reports_failure(client_factory, refused_port):
    failures = []
    client = client_factory(connect_failure_handler=lambda c, failure: failures.append(failure))
    signal = CompletionSignal("connect")
    client.ioloop.call_later(TIMEOUT, lambda: signal.send("timed out"))

    result = client.connect(
        host="127.0.0.1",
        port=refused_port,
        vhost="/",
        user="guest",
        password="guest",
        timeout=2,
        signal=signal,
    )

    assert result is client
    assert not client.is_open
    assert len(failures) == 1
    assert isinstance(failures[0], BrokerFailure)


def test_timer_completes_wait_on_pika_ioloop(client_factory):
    client = client_factory()
    signal = CompletionSignal("timer")
    client.ioloop.call_later(0.01, lambda: signal.send("fired"))

    assert client.wait(signal) == "fired"
