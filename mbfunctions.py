# ==============================================
#  Function registry
#  Maps a Modbus function code to the shape of its data buffer and
#  whether the transaction reads or writes.
# ==============================================

from enum import Enum, IntEnum

from mberrors import ConfigurationError


class FunctionCode(IntEnum):
    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10


class Shape(Enum):
    """Buffer shape. `width` is the bit width of one unit, None for a plain int."""
    SCALAR = None
    BYTES = 8
    WORDS = 16

    @property
    def width(self):
        return self.value

    @property
    def mask(self):
        return (1 << self.value) - 1 if self.value else None


class Direction(Enum):
    READ = "read"
    WRITE = "write"


# code -> (shape, direction, implemented, label)
FUNCTIONS = {
    FunctionCode.READ_COILS: (Shape.BYTES, Direction.READ, True, "Read Coils"),
    FunctionCode.READ_DISCRETE_INPUTS: (Shape.SCALAR, Direction.READ, False, "Read Discrete Inputs"),
    FunctionCode.READ_HOLDING_REGISTERS: (Shape.WORDS, Direction.READ, True, "Read Holding Registers"),
    FunctionCode.READ_INPUT_REGISTERS: (Shape.WORDS, Direction.READ, True, "Read Input Registers"),
    FunctionCode.WRITE_SINGLE_COIL: (Shape.SCALAR, Direction.WRITE, True, "Write Single Coil"),
    FunctionCode.WRITE_SINGLE_REGISTER: (Shape.SCALAR, Direction.WRITE, True, "Write Single Register"),
    FunctionCode.WRITE_MULTIPLE_COILS: (Shape.BYTES, Direction.WRITE, True, "Write Multiple Coils"),
    FunctionCode.WRITE_MULTIPLE_REGISTERS: (Shape.WORDS, Direction.WRITE, True, "Write Multiple registers"),
}


def functionCode(code) -> FunctionCode:
    """Turns a raw number into a FunctionCode, ConfigurationError if unknown."""
    try:
        return FunctionCode(code)
    except ValueError:
        raise ConfigurationError(f"No correct function chosen: {code!r}") from None


def resolve(code) -> tuple[Shape, Direction]:
    shape, direction, _, _ = FUNCTIONS[functionCode(code)]
    return shape, direction


def isImplemented(code) -> bool:
    return FUNCTIONS[functionCode(code)][2]


def label(code) -> str:
    return FUNCTIONS[functionCode(code)][3]


def helpLines():
    return [f"0x{int(code):02X} : {entry[3]}" for code, entry in FUNCTIONS.items()]
