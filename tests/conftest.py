import pytest


class FakeTransport:
    """Stands in for mbtransport.ModbusTransport. Every call is recorded on the line."""

    def __init__(self, line, link):
        self.line = line
        self.link = link
        self.slave = None
        self.error = ""

    def _log(self, *call):
        self.line.calls.append((self.link,) + call)

    def connect(self):
        self._log("connect")
        if not self.line.connectOk:
            self.error = "No such file or directory"
        return self.line.connectOk

    def close(self):
        self._log("close")

    def setSlave(self, address):
        self._log("setSlave", address)
        self.slave = address

    def setResponseTimeout(self, ms):
        self._log("setResponseTimeout", ms)

    def setDebug(self, enabled):
        self._log("setDebug", enabled)

    def strerror(self):
        return self.error

    def _answer(self, name, offset, count, buf=None):
        self._log(name, offset, count, None if buf is None else list(buf))
        ret = self.line.responder(self, name, count)
        if ret != count:
            self.error = "Connection timed out"
        elif buf is not None and name.startswith("read"):
            buf[:count] = self.line.data[:count]
        return ret

    def readBits(self, offset, count, out):
        return self._answer("readBits", offset, count, out)

    def readRegisters(self, offset, count, out):
        return self._answer("readRegisters", offset, count, out)

    def readInputRegisters(self, offset, count, out):
        return self._answer("readInputRegisters", offset, count, out)

    def writeBit(self, offset, value):
        return self._answer("writeBit", offset, 1, [value])

    def writeRegister(self, offset, value):
        return self._answer("writeRegister", offset, 1, [value])

    def writeBits(self, offset, count, values):
        return self._answer("writeBits", offset, count, values)

    def writeRegisters(self, offset, count, values):
        return self._answer("writeRegisters", offset, count, values)


class FakeLine:
    """A bus of fake devices. `responder(transport, op, count)` returns the transferred count."""

    def __init__(self):
        self.calls = []
        self.opened = []
        self.connectOk = True
        self.data = []
        self.responder = lambda transport, op, count: count

    def open(self, link):
        transport = FakeTransport(self, link)
        self.opened.append(transport)
        return transport

    def answerOnly(self, *addresses):
        self.responder = lambda t, op, count: count if t.slave in addresses else -1

    def ops(self):
        skip = ("connect", "close", "setSlave", "setResponseTimeout", "setDebug")
        return [call for call in self.calls if call[1] not in skip]


@pytest.fixture
def line():
    return FakeLine()
