from .base import PrintJob
from .client import GatewayClient

__all__ = ["PrintJob", "GatewayClient"]
