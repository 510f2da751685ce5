# ==============================================
#  Scan engine
#  Walks baud x parity x slave address, one transaction per point.
#  A fixed setting is just an axis with one value, so a plain
#  single request goes through the same loop as a full sweep.
# ==============================================

import itertools
from dataclasses import dataclass
from typing import Optional

from mberrors import ConfigurationError, ModbusConnectionError, TransactionError, UnsupportedOperation
from mbfunctions import FunctionCode, functionCode, isImplemented, label


@dataclass(frozen=True)
class LinkSettings:
    """Serial line settings for one connection. Both None for TCP."""
    baudrate: Optional[int] = None
    parity: Optional[str] = None

    def prefix(self) -> str:
        if self.baudrate is None:
            return ""
        return f"Baudrate:{self.baudrate} Parity:{self.parity} "


@dataclass(frozen=True)
class ScanPoint:
    link: LinkSettings
    address: int

    def describe(self, withLink=False) -> str:
        return f"{self.link.prefix() if withLink else ''}Address:{self.address}"


@dataclass(frozen=True)
class Success:
    point: ScanPoint
    transferred: int
    payload: tuple


@dataclass(frozen=True)
class Failure:
    point: ScanPoint
    ret: int
    error: str


@dataclass(frozen=True)
class Unsupported:
    point: ScanPoint
    message: str


def classify(point: ScanPoint, ret: int, expected: int, payload=(), error="") -> "Success | Failure":
    """Success only when the transport moved exactly the requested number of units."""
    if ret == expected:
        return Success(point, ret, tuple(payload))
    return Failure(point, ret, error or str(TransactionError(f"transferred {ret} of {expected} units", ret)))


def linkAxes(baudrates=None, parities=None):
    """Cartesian product of the serial axes, baud outer. No axes means one TCP link."""
    if not baudrates:
        return [LinkSettings()]
    for name, axis in (("baud", baudrates), ("parity", parities)):
        if not axis:
            raise ConfigurationError(f"Empty {name} axis")
    return [LinkSettings(baud, parity.upper()) for baud, parity in itertools.product(baudrates, parities)]


def addressAxis(start: int, end: int, scan: bool):
    if scan and start >= end:
        raise ConfigurationError("Scan ending address must be bigger than starting address.")
    if not scan:
        end = start
    return range(start, end + 1)


class Scanner:
    """
    Runs one transaction per scan point and yields outcomes as they complete.

    openTransport(link) must return an unconnected transport for those settings.
    The buffer is shared by every point: written once for writes, refilled by reads.
    """

    def __init__(self, function, register, buffer, openTransport, addresses, links=None, timeoutMs=1000, debug=False):
        self.function = functionCode(function)
        self.register = register
        self.buffer = buffer
        self.openTransport = openTransport
        self.addresses = addresses
        self.links = links or [LinkSettings()]
        self.timeoutMs = timeoutMs
        self.debug = debug

    @property
    def isScan(self) -> bool:
        return len(self.addresses) > 1

    @property
    def isLinkScan(self) -> bool:
        return len(self.links) > 1

    def points(self):
        for link in self.links:
            for address in self.addresses:
                yield ScanPoint(link, address)

    def scan(self):
        if not isImplemented(self.function):
            # never touches the transport
            message = f"{label(self.function)}: not implemented yet!"
            for point in self.points():
                yield Unsupported(point, message)
            return

        for link in self.links:
            transport = self.openTransport(link)
            transport.setDebug(self.debug)
            transport.setResponseTimeout(self.timeoutMs)
            try:
                if not transport.connect():
                    raise ModbusConnectionError(f"Connection failed: {transport.strerror()}")
                for address in self.addresses:
                    yield self.transact(transport, ScanPoint(link, address))
            finally:
                transport.close()

    def transact(self, transport, point: ScanPoint):
        transport.setSlave(point.address)
        ret = self.invoke(transport)
        error = "" if ret == self.buffer.count else transport.strerror()
        return classify(point, ret, self.buffer.count, self.buffer.snapshot(), error)

    def invoke(self, transport) -> int:
        code, reg, buf = self.function, self.register, self.buffer
        if code == FunctionCode.READ_COILS:
            return transport.readBits(reg, buf.count, buf.values)
        elif code == FunctionCode.READ_HOLDING_REGISTERS:
            return transport.readRegisters(reg, buf.count, buf.values)
        elif code == FunctionCode.READ_INPUT_REGISTERS:
            return transport.readInputRegisters(reg, buf.count, buf.values)
        elif code == FunctionCode.WRITE_SINGLE_COIL:
            return transport.writeBit(reg, buf.scalar)
        elif code == FunctionCode.WRITE_SINGLE_REGISTER:
            return transport.writeRegister(reg, buf.scalar)
        elif code == FunctionCode.WRITE_MULTIPLE_COILS:
            return transport.writeBits(reg, buf.count, buf.values)
        elif code == FunctionCode.WRITE_MULTIPLE_REGISTERS:
            return transport.writeRegisters(reg, buf.count, buf.values)
        raise UnsupportedOperation(f"No transaction path for {label(code)}")
