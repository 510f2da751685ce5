# ==============================================
#  pymodbus transport
#  Thin adapter giving the scan engine a fixed call set:
#  every operation returns the number of units moved, or -1 with
#  the reason kept for strerror().
# ==============================================

from pymodbus import FramerType, pymodbus_apply_logging_config
from pymodbus.client import ModbusTcpClient, ModbusSerialClient
from pymodbus.exceptions import ModbusException

FAILED = -1


class ModbusTransport:
    def __init__(self):
        self.client = None
        self.slave = 1
        self.timeoutMs = 1000
        self.lastError = ""

    # --- link management ---
    def newClient(self, timeout: float):
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def connect(self) -> bool:
        if self.client is None:
            self.client = self.newClient(self.timeoutMs / 1000.0)
        try:
            ok = self.client.connect()
        except (ModbusException, OSError) as e:
            ok = False
            self.lastError = str(e)
        else:
            if not ok:
                self.lastError = f"unable to open {self.describe()}"
        return bool(ok)

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None

    def setSlave(self, address: int):
        self.slave = address

    def setResponseTimeout(self, ms: int):
        self.timeoutMs = ms

    def setDebug(self, enabled: bool):
        if enabled:
            pymodbus_apply_logging_config("DEBUG")

    def strerror(self) -> str:
        return self.lastError

    # --- transactions ---
    def _request(self, call, *args, **kwargs):
        self.lastError = ""
        try:
            rr = call(*args, device_id=self.slave, **kwargs)
        except (ModbusException, OSError) as e:
            self.lastError = str(e)
            return None
        if rr.isError():
            self.lastError = str(rr)
            return None
        return rr

    def readBits(self, offset: int, count: int, out: list) -> int:
        rr = self._request(self.client.read_coils, offset, count=count)
        if rr is None:
            return FAILED
        bits = rr.bits[:count]
        out[:len(bits)] = [int(b) for b in bits]
        return len(bits)

    def _readWords(self, call, offset, count, out):
        rr = self._request(call, offset, count=count)
        if rr is None:
            return FAILED
        regs = rr.registers[:count]
        out[:len(regs)] = regs
        return len(regs)

    def readRegisters(self, offset: int, count: int, out: list) -> int:
        return self._readWords(self.client.read_holding_registers, offset, count, out)

    def readInputRegisters(self, offset: int, count: int, out: list) -> int:
        return self._readWords(self.client.read_input_registers, offset, count, out)

    def writeBit(self, offset: int, value: int) -> int:
        rr = self._request(self.client.write_coil, offset, value != 0)
        return FAILED if rr is None else 1

    def writeRegister(self, offset: int, value: int) -> int:
        rr = self._request(self.client.write_register, offset, value & 0xFFFF)
        return FAILED if rr is None else 1

    def writeBits(self, offset: int, count: int, values: list) -> int:
        rr = self._request(self.client.write_coils, offset, [(v & 0xFF) != 0 for v in values[:count]])
        return FAILED if rr is None else count

    def writeRegisters(self, offset: int, count: int, values: list) -> int:
        rr = self._request(self.client.write_registers, offset, [v & 0xFFFF for v in values[:count]])
        return FAILED if rr is None else count


class SerialTransport(ModbusTransport):
    def __init__(self, device, baudrate, parity="E", dataBits=8, stopBits=1):
        super().__init__()
        self.device = device
        self.baudrate = baudrate
        self.parity = parity
        self.dataBits = dataBits
        self.stopBits = stopBits

    def newClient(self, timeout):
        return ModbusSerialClient(
            port=self.device,
            framer=FramerType.RTU,
            baudrate=self.baudrate,
            bytesize=self.dataBits,
            parity=self.parity,
            stopbits=self.stopBits,
            timeout=timeout,
            retries=0,
        )

    def describe(self):
        return f"{self.device} @ {self.baudrate} {self.dataBits}{self.parity}{self.stopBits}"


class TcpTransport(ModbusTransport):
    def __init__(self, host="127.0.0.1", port=502):
        super().__init__()
        self.host = host
        self.port = port

    def newClient(self, timeout):
        return ModbusTcpClient(self.host, port=self.port, timeout=timeout, retries=0)

    def describe(self):
        return f"{self.host}:{self.port}"


def transportFactory(config):
    """Returns openTransport(link) for the scan engine."""
    if config.mode == "tcp":
        return lambda link: TcpTransport(config.host, config.port)
    return lambda link: SerialTransport(config.device, link.baudrate, link.parity, config.dataBits, config.stopBits)
