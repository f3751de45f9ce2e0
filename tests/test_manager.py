"""
Tests for the connectivity state machine.
"""

import dataclasses
import time
from types import SimpleNamespace
import pytest

from tobylte.core import MockTransport, IOPump, CommandCorrelator
from tobylte.features import provisioning_commands, ACTIVATION_COMMANDS
from tobylte.manager import ConnectivityManager, ManagerState, RESTART_COMMAND, SOFT_RESET_COMMAND
from tobylte.exceptions import (
    CommandRejected,
    DeviceDisconnectedError,
    ExternalToolError,
    RegistrationTimeout,
)


@pytest.fixture
def build_manager(fast_config, interface, resolver):
    """Build a ConnectivityManager with recording collaborators and no delays."""
    def build(correlator, prober_factory, config=None, **kwargs):
        kwargs.setdefault("sleep", lambda _: None)
        return ConnectivityManager(
            config or fast_config,
            correlator,
            interface=interface,
            resolver=resolver,
            prober_factory=prober_factory,
            **kwargs
        )
    return build


def test_happy_path(build_manager, registered, make_prober_factory, interface, resolver, expected_network_config):
    """Test a configured modem is brought up and monitored until stopped."""
    factory = make_prober_factory(on_start=lambda prober: manager.stop())
    manager = build_manager(registered, factory)

    assert manager.run() == 0

    assert manager.state is ManagerState.STOPPED
    assert manager.network_config == expected_network_config
    assert interface.calls == [("wwan0", "10.0.0.5", "10.0.0.1")]
    assert resolver.calls == [("8.8.8.8", "8.8.4.4")]
    assert registered.posted == []

    prober = factory.instances[0]
    assert prober.target == "8.8.8.8"
    assert prober.source == "10.0.0.5"
    assert prober.started is True
    assert prober.stopped is True


def test_command_order(build_manager, registered, make_prober_factory):
    """Test provisioning runs PDP, registration, activation then extraction."""
    factory = make_prober_factory(on_start=lambda prober: manager.stop())
    manager = build_manager(registered, factory)

    manager.run()

    sent = registered.sent
    assert sent[:3] == ["AT+UBMCONF?", "AT+UUSBCONF?", "AT+UWWEBUI?"]
    assert sent[3:5] == ["AT+CMEE=2", "AT+CFUN=4"]
    assert sent[13:] == [
        'AT+UCGDFLT=1,"IP","internet"',
        "AT+CFUN=1",
        "AT+CREG?",
        "AT+UPSD=0,100,4",
        "AT+UPSD=0,0,0",
        "AT+UPSDA=0,3",
        "AT+CGCONTRDP",
        "AT+UIPADDR=",
    ]


def test_settings_change_restarts_modem(build_manager, scripted, make_prober_factory):
    """Test a corrected setting restarts the modem and exits after it returns."""
    scripted.ok("AT+UBMCONF?", "1")
    presence = iter([True, False, False, True])
    sleeps = []
    factory = make_prober_factory()
    manager = build_manager(
        scripted,
        factory,
        device_exists=lambda path: next(presence),
        sleep=sleeps.append
    )

    assert manager.run() == 0

    assert manager.state is ManagerState.RESTART_WAIT
    assert scripted.posted == [RESTART_COMMAND]
    assert "AT+UBMCONF=2" in scripted.sent
    assert "AT+CMEE=2" not in scripted.sent
    assert factory.instances == []
    assert len(sleeps) == 4


def test_reprovision_after_lost_link(build_manager, registered, make_prober_factory, interface):
    """Test three unanswered probes trigger a fresh provisioning cycle."""
    def stop_on_second(prober):
        if len(factory.instances) == 2:
            manager.stop()

    factory = make_prober_factory(["idle", "idle", "idle"], on_start=stop_on_second)
    manager = build_manager(registered, factory)

    assert manager.run() == 0

    assert manager.reprovision_count == 1
    assert registered.sent.count("AT+CFUN=4") == 2
    assert len(interface.calls) == 2
    assert registered.posted == []
    assert factory.instances[0].stopped is True


def test_success_keeps_link(build_manager, registered, make_prober_factory):
    """Test a reply between failures wipes the failure count."""
    factory = make_prober_factory(
        ["idle", "idle", "success", "idle", "idle"],
        on_start=lambda prober: manager.stop()
    )
    manager = build_manager(registered, factory)

    manager.run()

    assert manager.reprovision_count == 0
    assert manager.health.value == 2


def test_recovers_from_failed_cycle(build_manager, configured, fast_config, make_prober_factory, payloads):
    """Test a failed cycle soft-resets the modem and the next one succeeds."""
    scripted = configured
    scripted.ok("AT+CREG?", "0,2").ok("AT+CREG?", "0,2").ok("AT+CREG?", "0,1")
    scripted.ok("AT+CGCONTRDP", payloads["AT+CGCONTRDP"])
    scripted.ok("AT+UIPADDR=", payloads["AT+UIPADDR="])

    config = dataclasses.replace(fast_config, registration_attempts=2)
    factory = make_prober_factory(on_start=lambda prober: manager.stop())
    manager = build_manager(scripted, factory, config=config)

    assert manager.run() == 0

    assert scripted.posted == [SOFT_RESET_COMMAND]
    assert scripted.sent.count("AT+CMEE=2") == 2
    assert scripted.discarded == 1
    assert manager.network_config is not None


def test_recovery_escalates(build_manager, configured, fast_config, make_prober_factory):
    """Test the error propagates once the recovery budget is spent."""
    configured.ok("AT+CREG?", "0,3")

    config = dataclasses.replace(fast_config, registration_attempts=2, max_recoveries=2)
    manager = build_manager(configured, make_prober_factory(), config=config)

    with pytest.raises(RegistrationTimeout):
        manager.run()

    assert configured.posted == [SOFT_RESET_COMMAND] * 3
    assert configured.sent.count("AT+CMEE=2") == 3


def test_no_recovery_budget(build_manager, registered, fast_config, make_prober_factory):
    registered.reject("AT+UPSDA=0,3")

    config = dataclasses.replace(fast_config, max_recoveries=0)
    manager = build_manager(registered, make_prober_factory(), config=config)

    with pytest.raises(CommandRejected):
        manager.run()

    assert registered.posted == [SOFT_RESET_COMMAND]
    assert manager.state is ManagerState.ACTIVATE_SESSION


def test_host_tool_failure_is_recoverable(build_manager, registered, make_prober_factory, interface):
    interface.error = ExternalToolError("Command exited with status 1", command="ifconfig")
    manager = build_manager(registered, make_prober_factory())

    with pytest.raises(ExternalToolError):
        manager.run()

    assert len(interface.calls) == 3
    assert registered.posted == [SOFT_RESET_COMMAND] * 3


def test_settings_failure_is_fatal(build_manager, scripted, make_prober_factory):
    """Test a failed settings query soft-resets and propagates at once."""
    scripted.reject("AT+UBMCONF?")
    manager = build_manager(scripted, make_prober_factory())

    with pytest.raises(CommandRejected):
        manager.run()

    assert scripted.sent == ["AT+UBMCONF?"]
    assert scripted.posted == [SOFT_RESET_COMMAND]


def test_pump_failure_before_provisioning(build_manager, registered, make_prober_factory):
    """Test a dead pump is not retried."""
    pump = SimpleNamespace(failure=DeviceDisconnectedError("Device disconnected"))
    manager = build_manager(registered, make_prober_factory(), pump=pump)

    with pytest.raises(DeviceDisconnectedError):
        manager.run()

    assert "AT+CMEE=2" not in registered.sent
    assert registered.posted == [SOFT_RESET_COMMAND]


def test_pump_failure_while_monitoring(build_manager, registered, make_prober_factory):
    pump = SimpleNamespace(failure=None)

    def disconnect(prober):
        pump.failure = DeviceDisconnectedError("Device disconnected")

    factory = make_prober_factory(on_start=disconnect)
    manager = build_manager(registered, factory, pump=pump)

    with pytest.raises(DeviceDisconnectedError):
        manager.run()

    assert manager.state is ManagerState.MONITOR
    assert factory.instances[0].stopped is True


class EchoingModem:
    """MockTransport responder acting as a configured TOBY modem."""

    def __init__(self, payloads, registration=("0,1",)):
        self.registration = list(registration)
        self.answers = {
            "AT+UBMCONF?": ["+UBMCONF: 2", "OK"],
            "AT+UUSBCONF?": ['+UUSBCONF: 2,"ECM","RNDIS"', "OK"],
            "AT+UWWEBUI?": ["+UWWEBUI: 1", "OK"],
            "AT+CGCONTRDP": [f"+CGCONTRDP: {payloads['AT+CGCONTRDP']}", "OK"],
            "AT+UIPADDR=": [f"+UIPADDR: {payloads['AT+UIPADDR=']}", "OK"],
        }

    def __call__(self, command):
        if command == "AT+CREG?":
            stat = self.registration.pop(0) if len(self.registration) > 1 else self.registration[0]
            return [command, f"+CREG: {stat}", "OK"]
        return [command] + self.answers.get(command, ["OK"])


@pytest.fixture
def live(build_manager, make_prober_factory):
    """Build a manager driving an EchoingModem through the real pump and correlator."""
    started = []

    def build(modem, config):
        transport = MockTransport(responder=modem)
        io_pump = IOPump(transport, poll_interval=0.001)
        io_pump.start()
        started.append(io_pump)
        correlator = CommandCorrelator(
            io_pump.transmit_queue, io_pump.receive_queue, default_timeout=1.0, poll_interval=0.001
        )
        factory = make_prober_factory(on_start=lambda prober: manager.stop())
        manager = build_manager(correlator, factory, config=config, pump=io_pump, sleep=time.sleep)
        return manager, transport, factory

    yield build
    for io_pump in started:
        io_pump.close()


SETTINGS_QUERIES = ["AT+UBMCONF?", "AT+UUSBCONF?", "AT+UWWEBUI?"]


def session_commands(apn):
    return provisioning_commands(apn) + ["AT+CREG?"] + list(ACTIVATION_COMMANDS) + ["AT+CGCONTRDP", "AT+UIPADDR="]


def test_lifecycle_over_transport(live, fast_config, payloads, expected_network_config, interface):
    """Test the full bring-up against an echoing modem on the wire."""
    manager, transport, factory = live(EchoingModem(payloads), fast_config)

    assert manager.run() == 0

    assert transport.written == SETTINGS_QUERIES + session_commands("internet")
    assert manager.network_config == expected_network_config
    assert interface.calls == [("wwan0", "10.0.0.5", "10.0.0.1")]
    assert factory.instances[0].target == "8.8.8.8"


def test_recovery_over_transport(live, fast_config, payloads, expected_network_config):
    """Test the reset reply is not mistaken for the answer to the next cycle."""
    config = dataclasses.replace(fast_config, registration_attempts=1, soft_reset_delay=0.2)
    manager, transport, _ = live(EchoingModem(payloads, registration=("0,2", "0,1")), config)

    assert manager.run() == 0

    assert transport.written == (
        SETTINGS_QUERIES
        + provisioning_commands("internet")
        + ["AT+CREG?", SOFT_RESET_COMMAND]
        + session_commands("internet")
    )
    assert manager.network_config == expected_network_config
