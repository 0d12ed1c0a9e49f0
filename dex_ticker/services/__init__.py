from .web3_service import web3_manager
from .ticker_service import ticker_service

__all__ = [
    "web3_manager",
    "ticker_service"
]
