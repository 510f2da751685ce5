# ==============================================
#  Run configuration for modbusc
#  Everything a run needs, validated before any transaction is sent.
# ==============================================

import re
from dataclasses import dataclass, field
from typing import Optional

from mberrors import ConfigurationError
from mbfunctions import FunctionCode, functionCode
from mbscan import addressAxis, linkAxes

ADDRESS_PATTERN = re.compile(r"^(\d{1,3})(?:\.(\d{1,3}))?$")
MAX_UNIT_ID = 255


def anyInt(text) -> int:
    """Decimal or 0x-prefixed hexadecimal."""
    return int(str(text), 0)


@dataclass(frozen=True)
class AddressRange:
    start: int
    end: int
    scan: bool = False

    def axis(self):
        return addressAxis(self.start, self.end, self.scan)

    def __len__(self):
        return len(self.axis())


def parseAddress(text: str) -> AddressRange:
    """'5' is a single slave, '1.247' scans 1 through 247 inclusive."""
    match = ADDRESS_PATTERN.match(str(text).strip())
    if not match:
        raise ConfigurationError(f"Invalid slave address '{text}', expected <n> or <n.n>")
    start = int(match.group(1))
    scan = match.group(2) is not None
    end = int(match.group(2)) if scan else start
    if max(start, end) > MAX_UNIT_ID:
        raise ConfigurationError(f"Slave address out of range 0-{MAX_UNIT_ID}: '{text}'")
    if scan and start >= end:
        raise ConfigurationError("Scan ending address must be bigger than starting address.")
    return AddressRange(start, end, scan)


@dataclass
class ClientConfig:
    mode: str
    function: FunctionCode
    register: int
    addresses: AddressRange
    count: int = 1
    writeValues: list = field(default_factory=list)
    timeoutMs: int = 1000
    verbose: int = 0
    base1: bool = False
    # rtu
    device: Optional[str] = None
    baudrates: list = field(default_factory=list)
    parities: list = field(default_factory=lambda: ["E"])
    dataBits: int = 8
    stopBits: int = 1
    # tcp
    host: str = "127.0.0.1"
    port: int = 502

    def __post_init__(self):
        self.mode = self.mode.lower()
        if self.mode not in ("rtu", "tcp"):
            raise ConfigurationError(f"Missing <rtu|tcp> command, got '{self.mode}'")
        self.function = functionCode(self.function)
        if isinstance(self.addresses, str):
            self.addresses = parseAddress(self.addresses)
        self.parities = [p.upper() for p in self.parities]
        if self.mode == "rtu":
            if not self.device:
                raise ConfigurationError("Serial device is required for rtu")
            if not self.baudrates:
                raise ConfigurationError("At least one baud rate is required for rtu")
            for parity in self.parities:
                if parity not in ("N", "E", "O"):
                    raise ConfigurationError(f"Invalid parity '{parity}', expected N, E or O")
        if self.timeoutMs <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeoutMs} ms")
        if self.startRegister < 0:
            raise ConfigurationError(f"Start register {self.register} is below the base-1 origin")

    @property
    def startRegister(self) -> int:
        return self.register - 1 if self.base1 else self.register

    @property
    def debug(self) -> bool:
        return self.verbose > 1

    @property
    def isScan(self) -> bool:
        return self.addresses.scan

    @property
    def linkScan(self) -> bool:
        return self.mode == "rtu" and (len(self.baudrates) > 1 or len(self.parities) > 1)

    def links(self):
        if self.mode == "tcp":
            return linkAxes()
        return linkAxes(self.baudrates, self.parities)

    @classmethod
    def fromArgs(cls, args):
        common = dict(
            mode=args.mode,
            function=args.func,
            register=args.reg,
            addresses=args.addr,
            count=args.count,
            writeValues=args.write or [],
            timeoutMs=args.timeout,
            verbose=min(args.verbose, 2),
            base1=args.base1,
        )
        if args.mode == "rtu":
            return cls(
                device=args.dev,
                baudrates=args.baud,
                parities=args.parity or ["E"],
                dataBits=args.data_bits,
                stopBits=args.stop_bits,
                **common,
            )
        return cls(host=args.ip, port=args.port, **common)
