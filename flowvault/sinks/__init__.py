"""Output sinks for audit records."""

from flowvault.sinks.console import ConsoleSink
from flowvault.sinks.json_file import JsonFileSink
from flowvault.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]
