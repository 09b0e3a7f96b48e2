"""HTTP transport layer built on :mod:`requests`."""

from autorefresh.transport.config import ClientConfig
from autorefresh.transport.http import InstrumentedTransport, RawTransport

__all__ = ["ClientConfig", "InstrumentedTransport", "RawTransport"]
