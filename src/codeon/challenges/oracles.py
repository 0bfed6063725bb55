"""Reference oracles used for differential testing.

An oracle reproduces the observable behaviour of a challenge's reference
program: it pulls input lines through ``read_line`` and emits the values the
learner's program must print through ``write``. Oracles only emit the parts of
the output that are checked; labels and prompts are left to the learner.
"""

import math
from typing import Awaitable, Callable, Protocol

from ..errors import CatalogError

ReadLine = Callable[[], str]
Write = Callable[[str], None]


class Oracle(Protocol):
    def __call__(self, read_line: ReadLine, write: Write) -> Awaitable[None]:
        ...


_REGISTRY: dict[str, Oracle] = {}


def register_oracle(challenge_id: str) -> Callable[[Oracle], Oracle]:
    """Decorator registering ``func`` as the oracle for ``challenge_id``."""

    def decorator(func: Oracle) -> Oracle:
        if challenge_id in _REGISTRY:
            raise CatalogError(f"Oracle already registered for challenge {challenge_id}")
        _REGISTRY[challenge_id] = func
        return func

    return decorator


def get_oracle(challenge_id: str) -> Oracle:
    try:
        return _REGISTRY[challenge_id]
    except KeyError:
        raise CatalogError(f"No oracle registered for challenge {challenge_id}") from None


async def run_oracle(oracle: Oracle, stdin: str) -> str:
    """Feed ``stdin`` to ``oracle`` line by line and collect what it writes.

    Reads past the end of the block return an empty string, like a console
    at end of input.
    """
    lines = iter(stdin.splitlines())
    written: list[str] = []

    def read_line() -> str:
        return next(lines, "")

    await oracle(read_line, written.append)
    return "".join(written)


def _number(text: str) -> float:
    return float(text.strip())


@register_oracle("1.1")
async def sphere_volume(read_line: ReadLine, write: Write) -> None:
    radius = _number(read_line())
    write(f"{(4.0 / 3.0) * math.pi * math.pow(radius, 3):.2f}\n")


@register_oracle("1.2")
async def temperature_conversion(read_line: ReadLine, write: Write) -> None:
    choice = int(read_line().strip())
    if choice == 1:
        celsius = _number(read_line())
        write(f"{(celsius * 9 / 5) + 32:.2f}\n")
    elif choice == 2:
        fahrenheit = _number(read_line())
        write(f"{(fahrenheit - 32) * 5 / 9:.2f}\n")
    else:
        write("Invalid choice!\n")


@register_oracle("1.3")
async def peso_dollar_conversion(read_line: ReadLine, write: Write) -> None:
    choice = int(read_line().strip())
    if choice == 1:
        write(f"{_number(read_line()) * 0.018:.2f} USD\n")
    elif choice == 2:
        write(f"{_number(read_line()) * 56.0:.2f} PHP\n")
    else:
        write("Invalid choice!\n")


MEASUREMENT_FACTORS = {1: (3.28084, "feet"), 2: (2.20462, "pounds"), 3: (0.264172, "gallons")}


@register_oracle("1.4")
async def measurement_conversion(read_line: ReadLine, write: Write) -> None:
    choice = int(read_line().strip())
    if choice not in MEASUREMENT_FACTORS:
        write("Invalid choice!\n")
        return
    factor, unit = MEASUREMENT_FACTORS[choice]
    write(f"{_number(read_line()) * factor:.2f} {unit}\n")


@register_oracle("1.5")
async def two_variables(read_line: ReadLine, write: Write) -> None:
    first = _number(read_line())
    second = _number(read_line())
    if second == 0:
        write("Division by zero is not allowed.\n")
    else:
        write(f"{first / second:.2f}\n")


@register_oracle("1.6")
async def circle_circumference(read_line: ReadLine, write: Write) -> None:
    write(f"{2 * math.pi * _number(read_line()):.2f}\n")


@register_oracle("1.7")
async def three_variables(read_line: ReadLine, write: Write) -> None:
    whole = int(read_line().strip())
    write(f"{whole / 2.0:.2f}\n")


@register_oracle("1.8")
async def purchase_price(read_line: ReadLine, write: Write) -> None:
    price = _number(read_line())
    tax_rate = _number(read_line())
    write(f"{price + price * (tax_rate / 100):.2f}\n")


@register_oracle("1.9")
async def economic_order_quantity(read_line: ReadLine, write: Write) -> None:
    demand = _number(read_line())
    order_cost = _number(read_line())
    holding_cost = _number(read_line())
    if demand <= 0 or order_cost <= 0 or holding_cost <= 0:
        write("Error: All values must be positive.\n")
    else:
        write(f"{math.sqrt((2 * demand * order_cost) / holding_cost):.2f}\n")


@register_oracle("1.10")
async def circle_radius(read_line: ReadLine, write: Write) -> None:
    area = _number(read_line())
    if area <= 0:
        write("Error: Area must be positive.\n")
    else:
        write(f"{math.sqrt(area / math.pi):.4f}\n")
