from .tickers import router

__all__ = ["router"]
