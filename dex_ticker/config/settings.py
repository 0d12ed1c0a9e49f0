import os
from typing import List, Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SECONDS_PER_DAY = 86400


class Settings(BaseSettings):
    # API Configuration
    log_level: str = "INFO"
    
    # Network Configuration
    networks: str = "ethereum"
    network: Optional[str] = None
    # Networks whose RPC nodes return PoA-style extraData
    poa_networks: str = "polygon,bsc,base"
    
    # Rolling window: bucket_duration_seconds * buckets_per_day must cover one day
    bucket_duration_seconds: int = 300
    buckets_per_day: int = 288
    
    # Reported in the dex_info header of every output
    protocol: str = "uniswap"
    protocol_version: str = "v2+v3"
    
    # Directory for file-backed stores; in-memory stores when unset
    state_dir: Optional[str] = None
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        env_prefix="",  # No prefix for env vars
    )
    
    @model_validator(mode="after")
    def check_window(self) -> "Settings":
        if self.bucket_duration_seconds <= 0 or self.buckets_per_day <= 0:
            raise ValueError("bucket_duration_seconds and buckets_per_day must be positive")
        if self.bucket_duration_seconds * self.buckets_per_day != SECONDS_PER_DAY:
            raise ValueError(
                f"bucket_duration_seconds * buckets_per_day must equal {SECONDS_PER_DAY}, "
                f"got {self.bucket_duration_seconds} * {self.buckets_per_day}"
            )
        return self
    
    @property
    def networks_list(self) -> List[str]:
        """Parse networks from comma-separated string"""
        return [network.strip() for network in self.networks.split(",") if network.strip()]
    
    @property
    def active_networks(self) -> List[str]:
        """Get active networks (single network mode or all configured)"""
        all_networks = self.networks_list
        if self.network and self.network in all_networks:
            return [self.network]  # Single network mode
        return all_networks
    
    @property
    def poa_networks_list(self) -> List[str]:
        return [network.strip() for network in self.poa_networks.split(",") if network.strip()]
    
    def get_rpc_url(self, network: str) -> str:
        """Get RPC URL for specific network from environment variables"""
        env_var_name = f"{network.upper()}_RPC_URL"
        return os.getenv(env_var_name, "")
    
    def get_factory_address(self, network: str) -> Optional[str]:
        """Get factory address reported in dex_info, if configured"""
        env_var_name = f"{network.upper()}_FACTORY_ADDRESS"
        address = os.getenv(env_var_name, "")
        return address.lower() if address else None


settings = Settings()
