"""InfluxDB configuration and write client."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import aiohttp

from .config import require_env

logger = logging.getLogger(__name__)

FieldValue = Union[float, int, bool, str]


@dataclass(frozen=True)
class InfluxConfig:
    """InfluxDB connection configuration."""
    address: str
    user: str
    password: str
    database: str

    @classmethod
    def from_env(cls) -> "InfluxConfig":
        """Create config from environment variables.

        Raises:
            ConfigError: If any of the variables is missing.
        """
        env = require_env("INFLUX_ADDRESS", "INFLUX_USER", "INFLUX_PASSWORD", "INFLUX_DATABASE")
        return cls(
            address=env["INFLUX_ADDRESS"].rstrip("/"),
            user=env["INFLUX_USER"],
            password=env["INFLUX_PASSWORD"],
            database=env["INFLUX_DATABASE"],
        )


@dataclass
class Measurement:
    """A single point to write: a name, field values and tags."""
    name: str
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)

    def add_field(self, key: str, value: FieldValue) -> None:
        self.fields[key] = value

    def add_tag(self, key: str, value: str) -> None:
        self.tags[key] = value


class WriteError(Exception):
    """Base class for failed database writes."""

    pass


class InfluxTransportError(WriteError):
    """The request never got a response (connection refused, reset, DNS...)."""

    pass


class InfluxRejectedError(WriteError):
    """The server answered, but not with success."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"InfluxDB rejected write (HTTP {status}): {body.strip()}")


class WriteTimeoutError(WriteError):
    """The write did not finish in time."""

    pass


def _escape(value: str, chars: str) -> str:
    for char in chars:
        value = value.replace(char, f"\\{char}")
    return value


def _format_field_value(value: FieldValue) -> str:
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    raise TypeError(f"Unsupported field type: {type(value).__name__}")


def to_line_protocol(measurement: Measurement) -> str:
    """Encode a measurement as one line of InfluxDB line protocol.

    No timestamp is written; the server assigns one on arrival.

    Raises:
        ValueError: If the measurement has no fields.
    """
    if not measurement.fields:
        raise ValueError(f"Measurement '{measurement.name}' has no fields")

    key = _escape(measurement.name, ", ")
    for tag_key, tag_value in sorted(measurement.tags.items()):
        key += f",{_escape(tag_key, ',= ')}={_escape(str(tag_value), ',= ')}"

    fields = ",".join(
        f"{_escape(field_key, ',= ')}={_format_field_value(field_value)}"
        for field_key, field_value in measurement.fields.items()
    )
    return f"{key} {fields}"


class InfluxClient:
    """Writes measurements to an InfluxDB 1.x server over HTTP.

    One aiohttp session is shared by all writes, so several writes may be
    in flight at once. Use as an async context manager:

        async with InfluxClient(config) as client:
            await client.write(measurement)
    """

    def __init__(self, config: InfluxConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "InfluxClient":
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @property
    def write_url(self) -> str:
        return f"{self.config.address}/write"

    async def write(self, measurement: Measurement) -> None:
        """Write a single measurement.

        Raises:
            InfluxTransportError: If the server could not be reached.
            InfluxRejectedError: If the server answered with a non-2xx status.
        """
        if self._session is None:
            raise RuntimeError("InfluxClient is not open; use 'async with InfluxClient(...)'")

        line = to_line_protocol(measurement)
        params = {
            "db": self.config.database,
            "u": self.config.user,
            "p": self.config.password,
        }

        try:
            async with self._session.post(self.write_url, params=params, data=line.encode("utf-8")) as response:
                if 200 <= response.status < 300:
                    logger.debug(f"Wrote {line}")
                    return
                body = await response.text()
        except aiohttp.ClientError as e:
            raise InfluxTransportError(f"Could not reach InfluxDB at {self.config.address}: {e}") from e

        raise InfluxRejectedError(response.status, body)
