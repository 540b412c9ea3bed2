"""Configuration management for flowvault."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from flowvault.exceptions import ConfigurationError

# Base units per whole token (1 token = 10^9 motes)
UNITS_PER_TOKEN = 1_000_000_000

STORE_BACKENDS = ("memory", "postgres")
SINK_TYPES = ("none", "console", "json", "kafka")


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "flowvault.audit"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "flowvault"
    user: str = "postgres"
    password: str = "postgres"
    table: str = "flowvault_kv"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class TierConfig:
    """Holding thresholds (in base units) that map an account to a tier."""

    bronze_threshold: int = 100 * UNITS_PER_TOKEN
    silver_threshold: int = 500 * UNITS_PER_TOKEN
    gold_threshold: int = 1000 * UNITS_PER_TOKEN
    default_holdings: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.bronze_threshold <= self.silver_threshold <= self.gold_threshold:
            raise ConfigurationError(
                "Tier thresholds must be non-negative and ordered bronze <= silver <= gold"
            )


@dataclass
class StakingConfig:
    """Staking adapter configuration."""

    minimum_stake: int = 500 * UNITS_PER_TOKEN
    default_validator: str | None = None


@dataclass
class SimulationConfig:
    """Configuration for the keeper simulation."""

    num_accounts: int = 5
    days: int = 30
    rules_per_account: int = 2
    min_deposit: int = 50 * UNITS_PER_TOKEN
    max_deposit: int = 500 * UNITS_PER_TOKEN
    start_time: int = 1_700_000_000
    tick_seconds: int = 3600
    locale: str = "en_US"


@dataclass
class FlowVaultConfig:
    """Main configuration for flowvault."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    tiers: TierConfig = field(default_factory=TierConfig)
    staking: StakingConfig = field(default_factory=StakingConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    store_backend: str = "memory"
    sink: str = "none"
    seed: int | None = None
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self) -> None:
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(f"Unknown store backend: {self.store_backend}")
        if self.sink not in SINK_TYPES:
            raise ConfigurationError(f"Unknown sink type: {self.sink}")

    @classmethod
    def from_env(cls) -> "FlowVaultConfig":
        """Create config from environment variables."""
        import os

        def _int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("KAFKA_TOPIC_PREFIX", "flowvault.audit"),
        )

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=_int("POSTGRES_PORT", 5432),
            database=os.getenv("POSTGRES_DB", "flowvault"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("FLOWVAULT_OUTPUT_DIR", "output")),
            pretty_json=os.getenv("FLOWVAULT_PRETTY_JSON", "false").lower() == "true",
        )

        defaults = TierConfig()
        tiers = TierConfig(
            bronze_threshold=_int("FLOWVAULT_TIER_BRONZE", defaults.bronze_threshold),
            silver_threshold=_int("FLOWVAULT_TIER_SILVER", defaults.silver_threshold),
            gold_threshold=_int("FLOWVAULT_TIER_GOLD", defaults.gold_threshold),
            default_holdings=_int("FLOWVAULT_DEFAULT_HOLDINGS", 0),
        )

        staking = StakingConfig(
            minimum_stake=_int("FLOWVAULT_MINIMUM_STAKE", StakingConfig().minimum_stake),
            default_validator=os.getenv("FLOWVAULT_DEFAULT_VALIDATOR") or None,
        )

        seed = os.getenv("FLOWVAULT_SEED")

        return cls(
            kafka=kafka,
            postgres=postgres,
            output=output,
            tiers=tiers,
            staking=staking,
            store_backend=os.getenv("FLOWVAULT_STORE", "memory"),
            sink=os.getenv("FLOWVAULT_SINK", "none"),
            seed=_int("FLOWVAULT_SEED", 0) if seed else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
