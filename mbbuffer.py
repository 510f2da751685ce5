# ==============================================
#  Request buffer builder
#  One buffer per run: populated once for writes, overwritten by every read.
# ==============================================

from mberrors import ConfigurationError
from mbfunctions import Shape, Direction
from mbresults import hexValues


class RequestBuffer:
    def __init__(self, shape: Shape, direction: Direction, count: int, values: list[int]):
        self.shape = shape
        self.direction = direction
        self.count = count      # units per transaction
        self.values = values    # storage handed to the transport

    @property
    def scalar(self) -> int:
        return self.values[0]

    def snapshot(self) -> tuple:
        return tuple(self.values)

    def __len__(self):
        return len(self.values)

    def __repr__(self):
        return f"RequestBuffer({self.shape.name}, {self.direction.name}, count={self.count}, values={self.values!r})"


def build(shape: Shape, direction: Direction, requestedCount: int = 1, writeValues=(), verbose=0) -> RequestBuffer:
    writeValues = list(writeValues)

    if direction is Direction.READ:
        if requestedCount < 1:
            raise ConfigurationError(f"Read count must be at least 1, got {requestedCount}")
        size = 1 if shape is Shape.SCALAR else requestedCount
        return RequestBuffer(shape, direction, requestedCount, [0] * size)

    if not writeValues:
        raise ConfigurationError("Nothing to write: give at least one value with --write")

    if shape is Shape.SCALAR:
        # only the first value is sent
        buf = RequestBuffer(shape, direction, 1, [writeValues[0]])
    else:
        buf = RequestBuffer(shape, direction, len(writeValues), [v & shape.mask for v in writeValues])

    if verbose:
        # a single register goes out as 16 bits
        shown = [buf.scalar & 0xFFFF] if shape is Shape.SCALAR else buf.values
        print(f"Data to write: {hexValues(shape, shown)}")
    return buf
