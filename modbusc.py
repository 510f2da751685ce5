# ==============================================
#  modbusc v1.0
#  Modbus RTU/TCP client for field diagnostics.
#  Sends one request, or sweeps baud rates, parities and slave
#  addresses to find out what answers on the line.
#
#  Examples:
#       modbusc tcp -i 10.0.0.7 -a 1 -f 3 -r 0 -c 4
#       modbusc rtu -d /dev/ttyUSB0 -b 9600 -b 19200 -p E -p N -a 1.32 -f 3 -r 0
#       modbusc rtu -d COM3 -b 19200 -a 5 -f 0x10 -r 100 -w 1 2 3 -v
# ==============================================

import argparse
import sys

from mberrors import ConfigurationError, ModbusConnectionError
from mbbuffer import build
from mbconfig import ClientConfig, anyInt
from mbfunctions import helpLines, resolve
from mbresults import Reporter
from mbscan import Scanner
from mbtransport import transportFactory

PROGNAME = "modbusc"
MAX_WRITE_VALUES = 123
MAX_BAUDRATES = 16
MAX_PARITIES = 3


def buildParser():
    functions = "Modbus function:\n" + "\n".join(f"    {line}" for line in helpLines())

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-a", "--addr", required=True, help="Slave address <n>, or <n.n> for an address scan")
    common.add_argument("-r", "--reg", type=anyInt, required=True, help="Start register")
    common.add_argument("-f", "--func", type=anyInt, required=True, help="Modbus function (see list below)")
    common.add_argument("-w", "--write", type=anyInt, nargs="+", action="extend", metavar="N", help="Data to write")
    common.add_argument("-c", "--count", type=anyInt, default=1, help="Data read count (default: 1)")
    common.add_argument("-o", "--timeout", type=anyInt, default=1000, metavar="MS", help="Request timeout in ms (default: 1000)")
    common.add_argument("-1", "--base-1", dest="base1", action="store_true", help="Base 1 addressing")
    common.add_argument("-v", "--verbose", action="count", default=0, help="Verbose output, twice for wire tracing")

    parser = argparse.ArgumentParser(
        prog=PROGNAME,
        description="Modbus client utils.",
        epilog=functions,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="mode", metavar="<rtu|tcp>")
    sub.required = True

    rtu = sub.add_parser("rtu", parents=[common], help="Serial line, RTU framing",
                         epilog=functions, formatter_class=argparse.RawDescriptionHelpFormatter)
    rtu.add_argument("-d", "--dev", required=True, help="Serial device e.g. /dev/ttyUSB0 or COM3")
    rtu.add_argument("-b", "--baud", type=int, action="append", required=True,
                     help="Baud rate, repeat to scan several")
    rtu.add_argument("--data-bits", type=int, choices=[7, 8], default=8, help="Data bits (default: 8)")
    rtu.add_argument("--stop-bits", type=int, choices=[1, 2], default=1, help="Stop bits (default: 1)")
    rtu.add_argument("-p", "--parity", type=str.upper, choices=["N", "E", "O"], action="append",
                     help="Parity (default: E), repeat to scan several")

    tcp = sub.add_parser("tcp", parents=[common], help="Modbus TCP",
                         epilog=functions, formatter_class=argparse.RawDescriptionHelpFormatter)
    tcp.add_argument("-p", "--port", type=int, default=502, help="Device TCP port (default: 502)")
    tcp.add_argument("-i", "--ip", default="127.0.0.1", help="Device IP address (default: 127.0.0.1)")
    return parser


def checkLimits(parser, args):
    if args.write and len(args.write) > MAX_WRITE_VALUES:
        parser.error(f"at most {MAX_WRITE_VALUES} values can be written")
    if args.mode == "rtu":
        if len(args.baud) > MAX_BAUDRATES:
            parser.error(f"at most {MAX_BAUDRATES} baud rates can be scanned")
        if args.parity and len(args.parity) > MAX_PARITIES:
            parser.error(f"at most {MAX_PARITIES} parities can be scanned")


def run(config: ClientConfig, openTransport=None) -> int:
    """Runs the configured request or scan. Returns the process exit code."""
    shape, direction = resolve(config.function)
    buffer = build(shape, direction, config.count, config.writeValues, verbose=config.verbose)

    scanner = Scanner(
        config.function,
        config.startRegister,
        buffer,
        openTransport or transportFactory(config),
        config.addresses.axis(),
        links=config.links(),
        timeoutMs=config.timeoutMs,
        debug=config.debug,
    )
    reporter = Reporter(shape, direction, scan=scanner.isScan, linkScan=scanner.isLinkScan, verbose=config.verbose)

    for outcome in scanner.scan():
        reporter.report(outcome)
    reporter.summary()
    return 0 if reporter.responding else 1


def main(argv=None) -> int:
    parser = buildParser()
    args = parser.parse_args(argv)
    checkLimits(parser, args)

    try:
        config = ClientConfig.fromArgs(args)
        return run(config)
    except ConfigurationError as e:
        print(f"{PROGNAME}: {e}")
        print(f"Try '{PROGNAME} {args.mode} --help' for more information.")
        return 1
    except ModbusConnectionError as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
