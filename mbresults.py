# ==============================================
#  Result formatter
#  Renders outcomes exactly as received: no reordering, no scaling.
# ==============================================

from mbfunctions import Shape, Direction
from mbscan import Success, Failure, Unsupported


def hexValues(shape: Shape, values) -> str:
    if shape is Shape.SCALAR:
        return f"0x{values[0]:04x}"
    digits = 2 if shape is Shape.BYTES else 4
    return "".join(f"0x{v:0{digits}x} " for v in values)


def render(outcome, shape: Shape) -> str:
    if isinstance(outcome, Success):
        if shape is Shape.SCALAR:
            return hexValues(shape, outcome.payload)
        return hexValues(shape, outcome.payload[:outcome.transferred])
    elif isinstance(outcome, Failure):
        return outcome.error
    elif isinstance(outcome, Unsupported):
        return outcome.message
    raise TypeError(f"Not an outcome: {outcome!r}")


class Reporter:
    """
    Prints outcomes as the scanner yields them.

    A single targeted request reports everything. During an address scan,
    failures are only shown (one line each) when verbose.
    """

    def __init__(self, shape: Shape, direction: Direction, scan=False, linkScan=False, verbose=0):
        self.shape = shape
        self.direction = direction
        self.scan = scan
        self.linkScan = linkScan
        self.verbose = verbose
        self.total = 0
        self.responding = []

    def lines(self, outcome):
        where = outcome.point.describe(self.linkScan)
        if isinstance(outcome, Unsupported):
            return [render(outcome, self.shape)]

        if isinstance(outcome, Failure):
            if not self.scan:
                return [f"ERROR occurred, ret:{outcome.ret}, {render(outcome, self.shape)}"]
            if self.verbose:
                return [f"{where} ERROR: {render(outcome, self.shape)}"]
            return []

        out = [where] if self.scan else []
        if self.direction is Direction.WRITE:
            out.append(f"SUCCESS: written {outcome.transferred} elements!")
        else:
            out.append(f"SUCCESS: read {outcome.transferred} of elements:")
            out.append(f"\tData: {render(outcome, self.shape)}")
        return out

    def report(self, outcome):
        self.total += 1
        if isinstance(outcome, Success):
            self.responding.append(outcome.point)
        for line in self.lines(outcome):
            print(line)

    def summaryLines(self):
        out = ["", "=== Scan finished ===", f"Responding: {len(self.responding)} of {self.total}"]
        out.extend(f"  {point.describe(self.linkScan)}" for point in self.responding)
        return out

    def summary(self):
        if not (self.scan or self.linkScan):
            return
        for line in self.summaryLines():
            print(line)
