import io

from rich.console import Console

from bmeinflux.collector.console import ReadingConsole
from bmeinflux.shared.models import ReadinessState


def test_prints_one_line_per_quantity(reading):
    buffer = io.StringIO()
    console = ReadingConsole(Console(file=buffer, color_system=None, width=120))

    console.show(reading, ReadinessState.FRESH)

    assert buffer.getvalue().splitlines() == [
        "State FRESH",
        "Temperature 22.5°C",
        "Pressure 1013.2hPa",
        "Humidity 40.1%",
        "Gas Resistence 12345.0Ω",
    ]
