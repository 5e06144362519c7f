__version__ = "0.1.0"

from .collector import LndCollector, PaymentCursor, build_collector  # noqa: E402
from .rpc import LndClient, LndRpcError  # noqa: E402

__all__ = [
    "LndClient",
    "LndCollector",
    "LndRpcError",
    "PaymentCursor",
    "build_collector",
]
