"""vmwriter – push labeled time series to a VictoriaMetrics JSON import endpoint."""

from .errors import RemoteError, TransportError, ValidationError, VmWriterError, WriteError
from .series import Series
from .writer import MetricsWriter

__version__ = "0.1.0"

__all__ = [
    "MetricsWriter",
    "RemoteError",
    "Series",
    "TransportError",
    "ValidationError",
    "VmWriterError",
    "WriteError",
    "__version__",
]
