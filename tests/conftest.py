import inspect
import socket

import pytest

from einvoice.samples import build_sample_invoice, get_scenario


VIOLATIONS = []


def _is_allowed_callstack(allowed_paths: list[str]) -> bool:
    for frame in inspect.stack():
        filename = (frame.filename or "").replace("\\", "/")
        for ap in allowed_paths:
            if ap in filename:
                return True
    return False


@pytest.fixture(autouse=True, scope="session")
def egress_guard():
    # The library never touches the network; only test code itself may.
    allowed_client_paths = ["/tests/"]

    real_getaddrinfo = socket.getaddrinfo
    real_create_connection = socket.create_connection

    def guard_getaddrinfo(host, *args, **kwargs):
        if _is_allowed_callstack(allowed_client_paths):
            return real_getaddrinfo(host, *args, **kwargs)
        VIOLATIONS.append({"fn": "getaddrinfo", "host": str(host)})
        raise RuntimeError("Egress blocked: getaddrinfo disallowed")

    def guard_create_connection(address, *args, **kwargs):
        if _is_allowed_callstack(allowed_client_paths):
            return real_create_connection(address, *args, **kwargs)
        VIOLATIONS.append({"fn": "create_connection", "address": str(address)})
        raise RuntimeError("Egress blocked: create_connection disallowed")

    socket.getaddrinfo = guard_getaddrinfo  # type: ignore[assignment]
    socket.create_connection = guard_create_connection  # type: ignore[assignment]

    yield

    socket.getaddrinfo = real_getaddrinfo  # type: ignore[assignment]
    socket.create_connection = real_create_connection  # type: ignore[assignment]

    assert not VIOLATIONS, f"network egress attempted: {VIOLATIONS}"


@pytest.fixture
def s1_invoice():
    return build_sample_invoice(get_scenario("S1"))


@pytest.fixture
def s2_invoice():
    return build_sample_invoice(get_scenario("S2"))


@pytest.fixture
def sample_invoice_factory():
    def _build(code: str, **kwargs):
        return build_sample_invoice(get_scenario(code), **kwargs)

    return _build
