# ==============================================
#  MODBUSINATOR v2.0 - TEST RESPONDER FOR modbusc
# ==============================================
#
# PURPOSE: Modbus slave with a fixed address space of coils, discrete inputs,
#          holding registers and input registers, all starting at zero.
#          TCP answers every unit id. RTU answers only its slave address.
#          Point modbusc (or any master) at it to check wiring and tooling.
#
# Examples:
#       python modbusinator.py tcp -i 0.0.0.0 -p 1502
#       python modbusinator.py rtu -d /dev/ttyUSB1 -b 19200 -p E -a 7 --hr 500
#
# Runs until Ctrl-C.

import argparse
import sys
import time
from threading import Thread
from pymodbus.server import StartTcpServer, StartSerialServer
from pymodbus import FramerType, pymodbus_apply_logging_config
from pymodbus.datastore import ModbusSequentialDataBlock, ModbusDeviceContext, ModbusServerContext

COILS = 1
DISCRETE_INPUTS = 2
HOLDING_REGISTERS = 3
INPUT_REGISTERS = 4


class MODBUSINATOR:
    def __init__(self, mode="tcp", address=1, coils=100, discreteInputs=100, holdingRegisters=100,
                 inputRegisters=100, host="127.0.0.1", port=502, comPort=None, baudRate=9600,
                 parity="E", dataBits=8, stopBits=1, verbose=False):
        self.mode = mode.lower()
        self.address = address
        self.ranges = {
            "Coils": coils,
            "Digital inputs": discreteInputs,
            "Holding registers": holdingRegisters,
            "Input registers": inputRegisters,
        }
        self.host = host
        self.port = port
        self.comPort = comPort
        self.baudRate = baudRate
        self.parity = parity
        self.dataBits = dataBits
        self.stopBits = stopBits
        self.verbose = verbose
        # datastore addresses are offset by one, keep a spare slot at the top
        self.deviceContext = ModbusDeviceContext(
            co=ModbusSequentialDataBlock(0, [False] * (coils + 1)),
            di=ModbusSequentialDataBlock(0, [False] * (discreteInputs + 1)),
            hr=ModbusSequentialDataBlock(0, [0] * (holdingRegisters + 1)),
            ir=ModbusSequentialDataBlock(0, [0] * (inputRegisters + 1)),
        )
        if self.mode == "tcp":
            self.context = ModbusServerContext(devices=self.deviceContext, single=True)
        else:
            self.context = ModbusServerContext(devices={address: self.deviceContext}, single=False)
        self.threads = []

    def setRegisters(self, address: int, values, kind=HOLDING_REGISTERS):
        """Seeds holding (3) or input (4) registers, 16 bits each."""
        self.deviceContext.setValues(kind, address, [int(v) & 0xFFFF for v in values])

    def setCoils(self, address: int, values, kind=COILS):
        """Seeds coils (1) or discrete inputs (2)."""
        self.deviceContext.setValues(kind, address, [bool(v) for v in values])

    def getValues(self, kind: int, address: int, count=1):
        return self.deviceContext.getValues(kind, address, count)

    def describeRanges(self):
        lines = ["Ranges: "]
        lines += [f"\t{name}: 0-0x{count:04x}" for name, count in self.ranges.items()]
        return lines

    def runServer(self):
        if self.threads:
            print("MODBUSINATOR already running")
            return

        if self.verbose:
            pymodbus_apply_logging_config("DEBUG")
            for line in self.describeRanges():
                print(line)

        if self.mode == "tcp":
            def _tcpInternal():
                StartTcpServer(context=self.context, address=(self.host, self.port))
            target = _tcpInternal
            where = f"TCP listening on {self.host}:{self.port}"
        else:
            def _serialInternal():
                StartSerialServer(
                    context=self.context,
                    framer=FramerType.RTU,
                    port=self.comPort,
                    baudrate=self.baudRate,
                    bytesize=self.dataBits,
                    parity=self.parity,
                    stopbits=self.stopBits,
                )
            target = _serialInternal
            where = (f"SERIAL listening on {self.comPort} @ {self.baudRate} "
                     f"{self.dataBits}{self.parity}{self.stopBits}, slave {self.address}")

        thread = Thread(target=target, daemon=True)
        thread.start()
        self.threads.append(thread)
        print(f"MODBUSINATOR {where}")

    def isRunning(self):
        return any(t.is_alive() for t in self.threads)

    def stop(self):
        print("MODBUSINATOR stopped cleanly (daemon threads end automatically)")
        self.threads = []


def buildParser():
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-a", "--addr", type=int, default=1, help="Slave address (default: 1)")
    common.add_argument("--co", type=int, default=100, help="Coils (default: 100)")
    common.add_argument("--di", type=int, default=100, help="Discrete inputs (default: 100)")
    common.add_argument("--hr", type=int, default=100, help="Holding registers (default: 100)")
    common.add_argument("--ir", type=int, default=100, help="Input registers (default: 100)")
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    parser = argparse.ArgumentParser(prog="modbusinator", description="Modbus server utils.")
    sub = parser.add_subparsers(dest="mode", metavar="<rtu|tcp>")
    sub.required = True

    rtu = sub.add_parser("rtu", parents=[common], help="Serial line, RTU framing")
    rtu.add_argument("-d", "--dev", required=True, help="Serial device e.g. /dev/ttyUSB0 or COM3")
    rtu.add_argument("-b", "--baud", type=int, required=True, help="Baud rate")
    rtu.add_argument("--data-bits", type=int, choices=[7, 8], default=8, help="Data bits (default: 8)")
    rtu.add_argument("--stop-bits", type=int, choices=[1, 2], default=1, help="Stop bits (default: 1)")
    rtu.add_argument("-p", "--parity", type=str.upper, choices=["N", "E", "O"], default="E", help="Parity (default: E)")

    tcp = sub.add_parser("tcp", parents=[common], help="Modbus TCP")
    tcp.add_argument("-p", "--port", type=int, default=502, help="Listening port (default: 502)")
    tcp.add_argument("-i", "--ip", default="127.0.0.1", help="Listening IP address (default: 127.0.0.1)")
    return parser


def fromArgs(args):
    common = dict(
        mode=args.mode,
        address=args.addr,
        coils=args.co,
        discreteInputs=args.di,
        holdingRegisters=args.hr,
        inputRegisters=args.ir,
        verbose=args.verbose,
    )
    if args.mode == "rtu":
        return MODBUSINATOR(comPort=args.dev, baudRate=args.baud, parity=args.parity,
                            dataBits=args.data_bits, stopBits=args.stop_bits, **common)
    return MODBUSINATOR(host=args.ip, port=args.port, **common)


def main(argv=None):
    args = buildParser().parse_args(argv)
    mb = fromArgs(args)
    mb.runServer()
    status = 1
    try:
        while mb.isRunning():
            time.sleep(0.5)
        print("MODBUSINATOR server exited", file=sys.stderr)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        status = 0
    finally:
        mb.stop()
    return status


if __name__ == "__main__":
    sys.exit(main())
