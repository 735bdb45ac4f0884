"""Configuration management using msgspec Struct."""

import argparse
import os
from pathlib import Path

import msgspec

from .codec import DEFAULT_PREFIX, SEPARATOR

DEFAULT_NAMESPACE = "banano-testing.cc"
BANANO_COIN_TYPE_SLIP44 = 198

# Read by the metrics module at import time to pick multi-process mode
WORKERS_ENV = "BNSGATEWAY_WORKERS"
CONFIG_ENV = "BNSGATEWAY_CONFIG"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config(msgspec.Struct, frozen=True):
    """Application configuration using msgspec Struct."""

    # HTTP server settings
    host: str = "127.0.0.1"
    port: int = 8080
    workers: int = 1

    # Logging
    log_level: str = "INFO"

    # Metrics settings
    metrics_host: str = "127.0.0.1"
    metrics_port: int = 8081

    # Name records (JSON database file)
    records_path: Path | None = None

    # Naming
    namespace: str = DEFAULT_NAMESPACE
    address_prefix: str = DEFAULT_PREFIX
    coin_type: int = BANANO_COIN_TYPE_SLIP44

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.port < 1 or self.port > 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")

        if self.metrics_port < 1 or self.metrics_port > 65535:
            raise ValueError(f"metrics_port must be between 1 and 65535, got {self.metrics_port}")

        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got {self.log_level}")

        if self.records_path is not None:
            if not self.records_path.exists():
                raise ValueError(f"records_path does not exist: {self.records_path}")
            if not self.records_path.is_file():
                raise ValueError(f"records_path must be a file: {self.records_path}")

        if not self.namespace or self.namespace.startswith("."):
            raise ValueError(f"namespace must be a non-empty domain, got {self.namespace!r}")

        if self.address_prefix and (
            not self.address_prefix.endswith(SEPARATOR)
            or self.address_prefix.count(SEPARATOR) != 1
        ):
            raise ValueError(
                f"address_prefix must be empty or end with the only {SEPARATOR!r}, "
                f"got {self.address_prefix!r}"
            )

        if self.coin_type < 0:
            raise ValueError(f"coin_type must be non-negative, got {self.coin_type}")

    @property
    def normalized_log_level(self) -> str:
        """Return normalized uppercase log level."""
        return self.log_level.upper()


def _enc_hook(obj: object) -> object:
    if isinstance(obj, Path):
        return str(obj)
    raise NotImplementedError(f"Objects of type {type(obj)} are not supported")


def _env_path(name: str) -> Path | None:
    value = os.getenv(name)
    return Path(value) if value else None


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser; defaults come from BNS_* environment variables."""
    parser = argparse.ArgumentParser(
        description="BNS (Banano Name Service) Gateway",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-i",
        "--ip",
        "--host",
        dest="host",
        default=os.getenv("BNS_LISTEN_IP", "127.0.0.1"),
        help="server IP to bind to -- change it to 0.0.0.0 for all interfaces",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=int(os.getenv("BNS_LISTEN_PORT", "8080")),
        help="server port to bind to",
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        default=int(os.getenv("BNS_WORKERS", "1")),
        help="number of Granian worker processes",
    )
    parser.add_argument(
        "--json",
        dest="records_path",
        type=Path,
        default=_env_path("BNS_RECORDS"),
        required=os.getenv("BNS_RECORDS") is None,
        help="JSON file to use as a database",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default=os.getenv("BNS_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    parser.add_argument(
        "--metrics-host",
        default=os.getenv("BNS_METRICS_HOST", "127.0.0.1"),
        help="Host for metrics server",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=int(os.getenv("BNS_METRICS_PORT", "8081")),
        help="Port for metrics server",
    )
    parser.add_argument(
        "--namespace",
        default=os.getenv("BNS_NAMESPACE", DEFAULT_NAMESPACE),
        help="Domain suffix appended to every BNS name",
    )
    parser.add_argument(
        "--address-prefix",
        default=os.getenv("BNS_ADDRESS_PREFIX", DEFAULT_PREFIX),
        help="Literal prefix of encoded Banano addresses",
    )
    parser.add_argument(
        "--coin-type",
        type=int,
        default=int(os.getenv("BNS_COIN_TYPE", str(BANANO_COIN_TYPE_SLIP44))),
        help="SLIP-44 coin type slot holding Banano addresses",
    )
    return parser


def get_config(argv: list[str] | None = None) -> Config:
    """Parse command line arguments and return configuration."""
    args = build_parser().parse_args(argv)

    config_dict: dict[str, object] = {
        "host": args.host,
        "port": args.port,
        "workers": args.workers,
        "log_level": args.log_level,
        "metrics_host": args.metrics_host,
        "metrics_port": args.metrics_port,
        "records_path": args.records_path,
        "namespace": args.namespace,
        "address_prefix": args.address_prefix,
        "coin_type": args.coin_type,
    }

    return _build_config(config_dict)


def _build_config(config_dict: dict[str, object]) -> Config:
    # Struct construction skips type checks, __post_init__ still validates
    try:
        return Config(**config_dict)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ValueError(f"Configuration validation error: {e}") from e


def config_to_json(config: Config) -> str:
    """Serialize configuration for worker processes."""
    return msgspec.json.encode(config, enc_hook=_enc_hook).decode()


def config_from_json(data: str | bytes) -> Config:
    """Inverse of :func:`config_to_json`."""
    try:
        config_dict = msgspec.json.decode(data)
    except msgspec.DecodeError as e:
        raise ValueError(f"Configuration is not valid JSON: {e}") from e

    if not isinstance(config_dict, dict):
        raise ValueError("Configuration must be a JSON object")
    if config_dict.get("records_path"):
        config_dict["records_path"] = Path(config_dict["records_path"])
    return _build_config(config_dict)
