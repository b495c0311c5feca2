"""Human-readable console output of each reading."""

from typing import Optional

from rich.console import Console

from bmeinflux.shared.models import ReadinessState, Reading


class ReadingConsole:
    """Prints one line per quantity for every reading taken"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def show(self, reading: Reading, state: ReadinessState):
        style = "green" if state == ReadinessState.FRESH else "yellow"
        self.console.print(f"State [{style}]{state.name}[/{style}]")
        self.console.print(f"Temperature {reading.temperature}°C")
        self.console.print(f"Pressure {reading.pressure}hPa")
        self.console.print(f"Humidity {reading.humidity}%")
        self.console.print(f"Gas Resistence {reading.gas_resistance}Ω")
