"""
End to end over localhost TCP: MODBUSINATOR answers, modbusc asks,
both sides use real pymodbus.
"""

import socket
import time

import pytest

import modbusc
from mbconfig import ClientConfig
from modbusinator import MODBUSINATOR, HOLDING_REGISTERS


def freePort():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def waitForPort(port, deadline=5.0):
    end = time.time() + deadline
    while time.time() < end:
        try:
            with socket.create_connection(("127.0.0.1", port), timeout=0.2):
                return True
        except OSError:
            time.sleep(0.1)
    return False


@pytest.fixture(scope="module")
def server():
    port = freePort()
    mb = MODBUSINATOR(mode="tcp", host="127.0.0.1", port=port, holdingRegisters=50, coils=50)
    mb.runServer()
    if not waitForPort(port):
        pytest.skip("responder did not start")
    yield mb, port
    mb.stop()


def config(port, **kwargs):
    base = dict(mode="tcp", host="127.0.0.1", port=port, register=0, addresses="1", timeoutMs=2000)
    base.update(kwargs)
    return ClientConfig(**base)


def test_write_then_read_registers(server, capsys):
    mb, port = server
    assert modbusc.run(config(port, function=0x10, register=10, writeValues=[0x1111, 0x2222, 0x3333])) == 0
    assert modbusc.run(config(port, function=0x03, register=10, count=3)) == 0
    out = capsys.readouterr().out
    assert "SUCCESS: written 3 elements!" in out
    assert "\tData: 0x1111 0x2222 0x3333 \n" in out


def test_write_single_coil_then_read(server, capsys):
    mb, port = server
    assert modbusc.run(config(port, function=0x05, register=4, writeValues=[1])) == 0
    assert modbusc.run(config(port, function=0x01, register=3, count=3)) == 0
    assert "\tData: 0x00 0x01 0x00 \n" in capsys.readouterr().out


def test_tcp_responder_answers_every_unit_id(server, capsys):
    mb, port = server
    assert modbusc.run(config(port, function=0x03, addresses="1.4", count=1)) == 0
    assert "Responding: 4 of 4" in capsys.readouterr().out


def test_out_of_range_read_is_reported(server, capsys):
    mb, port = server
    assert modbusc.run(config(port, function=0x04, register=5000, count=2)) == 1
    assert capsys.readouterr().out.startswith("ERROR occurred, ret:-1, ")


def test_seeded_registers_are_readable(server, capsys):
    mb, port = server
    mb.setRegisters(30, [0xCAFE])
    assert mb.getValues(HOLDING_REGISTERS, 30, 1) == [0xCAFE]
    modbusc.run(config(port, function=0x10, register=31, writeValues=[0xBEEF]))
    assert mb.getValues(HOLDING_REGISTERS, 31, 1) == [0xBEEF]


def test_responder_datastore_covers_every_range():
    mb = MODBUSINATOR(mode="rtu", address=7, comPort="/dev/null", holdingRegisters=10, coils=10)
    mb.setRegisters(9, [0x1234])
    mb.setCoils(9, [1])
    assert mb.getValues(HOLDING_REGISTERS, 9, 1) == [0x1234]
    assert mb.getValues(1, 9, 1) == [True]
    assert not mb.isRunning()
