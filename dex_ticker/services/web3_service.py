import logging
from typing import Dict, Optional
from web3 import AsyncWeb3, Web3
from web3.middleware import ExtraDataToPOAMiddleware
from dex_ticker.config import settings
from dex_ticker.models import BlockInput, LogEntry
from dex_ticker.utils import ERC20_ABI

logger = logging.getLogger(__name__)


def log_entry_from_rpc(log) -> LogEntry:
    """Convert a web3 log receipt into a LogEntry"""
    transaction_hash = log.get("transactionHash")
    return LogEntry(
        address=log["address"],
        topics=[bytes(topic) for topic in log["topics"]],
        data=bytes(log["data"]),
        transaction_hash=Web3.to_hex(transaction_hash) if transaction_hash is not None else None,
        log_index=log.get("logIndex")
    )


class Web3Manager:
    """Manages async Web3 connections for different networks"""

    def __init__(self):
        self._connections: Dict[str, AsyncWeb3] = {}
        self._decimals_cache: Dict[str, int] = {}  # network:token -> decimals

    def _connect(self, network: str) -> Optional[AsyncWeb3]:
        rpc_url = settings.get_rpc_url(network)
        if not rpc_url:
            logger.error(f"No RPC URL configured for {network}")
            return None

        try:
            w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

            # Add PoA middleware for networks that need it
            if network in settings.poa_networks_list:
                w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

            self._connections[network] = w3
            logger.info(f"Configured {network} RPC connection")
            return w3

        except Exception as e:
            logger.error(f"Error connecting to {network}: {e}")
            return None

    def get_web3(self, network: str) -> Optional[AsyncWeb3]:
        """Get Web3 instance for specific network, connecting on first use"""
        w3 = self._connections.get(network)
        if w3 is None:
            w3 = self._connect(network)
        return w3

    async def get_block_input(self, network: str, block_number: int) -> Optional[BlockInput]:
        """Fetch a block's timestamp and all of its logs"""
        w3 = self.get_web3(network)
        if not w3:
            return None

        try:
            block = await w3.eth.get_block(block_number)
            logs = await w3.eth.get_logs({"blockHash": block["hash"]})
        except Exception as e:
            logger.error(f"Error getting block {block_number} for {network}: {e}")
            return None

        logger.info(f"Fetched block {block_number} with {len(logs)} logs from {network}")
        return BlockInput(
            number=block["number"],
            timestamp=block.get("timestamp"),
            logs=[log_entry_from_rpc(log) for log in logs]
        )

    async def get_token_decimals(self, network: str, token_address: str) -> int:
        """ERC-20 decimals of a token, 0 when the call fails"""
        cache_key = f"{network}:{token_address}"
        if cache_key in self._decimals_cache:
            return self._decimals_cache[cache_key]

        w3 = self.get_web3(network)
        if not w3:
            return 0

        try:
            contract = w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)
            decimals = await contract.functions.decimals().call()
        except Exception as e:
            logger.error(f"Error calling decimals on {token_address}: {e}")
            return 0

        self._decimals_cache[cache_key] = decimals
        return decimals


# Global Web3 manager instance
web3_manager = Web3Manager()
