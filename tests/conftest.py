"""
Pytest configuration and fixtures.

Provides shared test fixtures for tobylte tests.
"""

import pytest
import logging

from tobylte.core import MockTransport, IOPump, CommandCorrelator
from tobylte.config import ManagerConfig
from tobylte.types import CommandOutcome, OutcomeStatus, NetworkConfig, TIMEOUT_MESSAGE


# Enable logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


class ScriptedCorrelator:
    """
    Stand-in for CommandCorrelator answering from a script.

    Each command maps to a list of outcomes consumed in order; the last one
    repeats. Unscripted commands succeed with an empty payload.
    """

    def __init__(self):
        self.sent = []
        self.posted = []
        self.discarded = 0
        self._script = {}

    def _add(self, command, status, payload):
        self._script.setdefault(command, []).append((status, payload))
        return self

    def ok(self, command, payload=""):
        return self._add(command, OutcomeStatus.SUCCESS, payload)

    def reject(self, command, payload="ERROR"):
        return self._add(command, OutcomeStatus.FAILURE, payload)

    def timeout(self, command):
        return self._add(command, OutcomeStatus.TIMED_OUT, TIMEOUT_MESSAGE)

    def send_and_await(self, command, timeout=None):
        self.sent.append(command)
        script = self._script.get(command)
        if not script:
            return CommandOutcome(command, OutcomeStatus.SUCCESS, "")
        status, payload = script.pop(0) if len(script) > 1 else script[0]
        return CommandOutcome(command, status, payload)

    def post(self, command):
        self.posted.append(command)

    def discard_pending(self):
        self.discarded += 1
        return 0


class FakeProber:
    """Reachability prober that replays probe results synchronously on start."""

    def __init__(self, target, source=None, max_rtt=5.0, on_success=None, on_idle=None, events=(), on_start=None):
        self.target = target
        self.source = source
        self.max_rtt = max_rtt
        self.on_success = on_success
        self.on_idle = on_idle
        self.events = list(events)
        self.on_start = on_start
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True
        if self.on_start:
            self.on_start(self)
        for event in self.events:
            if event == "success":
                self.on_success()
            else:
                self.on_idle()

    def stop(self):
        self.stopped = True


class FakeProberFactory:
    """Builds FakeProbers, handing each one the next event script."""

    def __init__(self, *scripts, on_start=None):
        self.scripts = list(scripts)
        self.on_start = on_start
        self.instances = []

    def __call__(self, **kwargs):
        events = self.scripts.pop(0) if self.scripts else ()
        prober = FakeProber(events=events, on_start=self.on_start, **kwargs)
        self.instances.append(prober)
        return prober


class RecordingInterface:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def configure(self, interface, ip, gateway):
        self.calls.append((interface, ip, gateway))
        if self.error:
            raise self.error


class RecordingResolver:
    def __init__(self):
        self.calls = []

    def write(self, primary_dns, secondary_dns):
        self.calls.append((primary_dns, secondary_dns))


CONTRDP_PAYLOAD = '1,0,"internet","0.0.0.0","10.0.0.5","8.8.8.8","8.8.4.4"'
UIPADDR_PAYLOAD = '1,"usb0:0","10.0.0.1","255.255.255.0","",""'


@pytest.fixture
def mock_transport():
    """
    Create a MockTransport instance for testing.

    Example:
        def test_something(mock_transport):
            mock_transport.add_response(["OK"])
            # ... test code ...
    """
    transport = MockTransport()
    yield transport
    transport.close()


@pytest.fixture
def pump(mock_transport):
    """Started IOPump over the MockTransport."""
    io_pump = IOPump(mock_transport, poll_interval=0.001)
    io_pump.start()
    yield io_pump
    io_pump.close()


@pytest.fixture
def correlator(pump):
    """
    CommandCorrelator wired to the running pump.

    Example:
        def test_at_command(correlator, mock_transport):
            mock_transport.add_response(["+CREG: 0,1", "OK"])
            outcome = correlator.send_and_await("AT+CREG?")
            assert outcome.payload == "0,1"
    """
    return CommandCorrelator(
        pump.transmit_queue,
        pump.receive_queue,
        default_timeout=1.0,
        poll_interval=0.001
    )


@pytest.fixture
def scripted():
    """ScriptedCorrelator with no script."""
    return ScriptedCorrelator()


@pytest.fixture
def configured(scripted):
    """ScriptedCorrelator for a modem whose settings are already correct."""
    scripted.ok("AT+UBMCONF?", "2")
    scripted.ok("AT+UUSBCONF?", '2,"ECM","RNDIS"')
    scripted.ok("AT+UWWEBUI?", "1")
    return scripted


@pytest.fixture
def registered(configured):
    """Configured modem that registers at once."""
    configured.ok("AT+CREG?", "0,1")
    configured.ok("AT+CGCONTRDP", CONTRDP_PAYLOAD)
    configured.ok("AT+UIPADDR=", UIPADDR_PAYLOAD)
    return configured


@pytest.fixture
def fast_config(tmp_path):
    """ManagerConfig with every delay set to zero."""
    return ManagerConfig(
        port="/dev/ttyACM0",
        apn="internet",
        interface="wwan0",
        command_timeout=0.1,
        poll_interval=0.0,
        registration_interval=0.0,
        pdp_settle_delay=0.0,
        activation_settle_delay=0.0,
        soft_reset_delay=0.0,
        restart_poll_interval=0.0,
        restart_settle_delay=0.0,
        monitor_interval=0.0,
        resolv_conf=str(tmp_path / "resolv.conf"),
    )


@pytest.fixture
def expected_network_config():
    return NetworkConfig(
        ip="10.0.0.5",
        gateway="10.0.0.1",
        primary_dns="8.8.8.8",
        secondary_dns="8.8.4.4"
    )


@pytest.fixture
def interface():
    """Interface configurator that records its calls."""
    return RecordingInterface()


@pytest.fixture
def resolver():
    """Resolver writer that records its calls."""
    return RecordingResolver()


@pytest.fixture
def make_prober_factory():
    """
    Build a FakeProberFactory from per-session event scripts.

    Example:
        factory = make_prober_factory(["idle", "idle", "idle"])
    """
    return FakeProberFactory


@pytest.fixture
def payloads():
    """Canned AT+CGCONTRDP and AT+UIPADDR= payloads."""
    return {"AT+CGCONTRDP": CONTRDP_PAYLOAD, "AT+UIPADDR=": UIPADDR_PAYLOAD}
