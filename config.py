"""Configuration for the StatsD aggregator"""
import socket
from pathlib import Path
from typing import List, Literal, Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from metrics.models import HarvestMode


class Config(BaseSettings):
    """Aggregator configuration with Pydantic validation and environment-based settings"""

    # Listener settings (shared by UDP and TCP)
    bind: str = Field(default="127.0.0.1", description="Listen address")
    port: int = Field(default=8125, ge=0, le=65535, description="Listen port, 0 picks an ephemeral port")
    queue_size: int = Field(default=0, ge=0, description="Ingestion queue bound, 0 for unbounded")

    # Aggregation settings
    flush_interval: float = Field(default=10, gt=0, description="Seconds between aggregate flushes")
    send_interval: float = Field(default=30, gt=0, description="Seconds between harvests")
    percentile: int = Field(default=90, ge=1, le=100, description="Timer percentile threshold")

    # Path settings
    client_name: Optional[str] = Field(default=None, description="Client prefix (defaults to the hostname)")
    add_client_prefix: bool = Field(default=True, description="Prepend the client name to every path")
    path_prefix: str = Field(default="statsd", description="Path prefix")
    add_path_prefix: bool = Field(default=True, description="Prepend the path prefix to every path")

    # Post-flush retention
    clear_on_flush: bool = Field(default=True, description="Empty every collection after a flush")
    delete_gauges: bool = Field(default=False, description="Remove gauges after flush")
    delete_counters: bool = Field(default=False, description="Remove counters after flush")
    delete_timers: bool = Field(default=False, description="Remove timers after flush")
    reset_gauges: bool = Field(default=False, description="Zero gauges after flush")
    reset_counters: bool = Field(default=True, description="Zero counters after flush")
    reset_timers: bool = Field(default=True, description="Empty timer samples after flush")

    # Harvest / service settings
    harvest_mode: HarvestMode = Field(default=HarvestMode.HTTP, description="How rendered output is handed over")
    http_host: str = Field(default="127.0.0.1", description="Service HTTP host")
    http_port: int = Field(default=9102, ge=1, le=65535, description="Service HTTP port")
    service_name: str = Field(default="statsd-aggregator", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Log file path")

    class Config:
        env_prefix = "STATSD_"
        case_sensitive = False

    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        """Accept lower-case level names"""
        if isinstance(v, str):
            return v.upper()
        return v

    @validator('log_file')
    def ensure_parent_directories(cls, v):
        """Ensure the log directory exists"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @validator('path_prefix')
    def strip_path_prefix(cls, v):
        return v.strip('.')

    def client_prefix(self) -> str:
        """Get the client prefix, falling back to the hostname"""
        if self.client_name:
            return self.client_name
        return socket.gethostname()

    def path_prefixes(self) -> List[str]:
        """Enabled path prefixes in render order"""
        prefixes = []
        if self.add_client_prefix:
            prefixes.append(self.client_prefix())
        if self.add_path_prefix and self.path_prefix:
            prefixes.append(self.path_prefix)
        return prefixes

    def is_stdout_harvest(self) -> bool:
        """Check if the built-in harvest loop writes to stdout"""
        return self.harvest_mode == HarvestMode.STDOUT
