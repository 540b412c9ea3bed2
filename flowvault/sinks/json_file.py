"""JSON Lines file sink for exporting audit records."""

import json
from pathlib import Path
from typing import Any

from flowvault.exceptions import SinkError
from flowvault.sinks.serialization import to_dict


class JsonFileSink:
    """Append audit records to one JSON Lines file per topic."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON Lines files.
        pretty : bool
            Sort keys in each line (records stay one per line).
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def path_for(self, topic: str) -> Path:
        # Use topic name as filename (replace dots with underscores)
        return self.output_dir / (topic.replace(".", "_") + ".jsonl")

    def write_batch(self, topic: str, records: list[Any]) -> None:
        """Append a batch of records to the topic's file."""
        try:
            with open(self.path_for(topic), "a", encoding="utf-8") as f:
                for record in records:
                    line = json.dumps(
                        to_dict(record), ensure_ascii=False, default=str, sort_keys=self.pretty
                    )
                    f.write(line + "\n")
        except OSError as exc:
            raise SinkError(f"Cannot write {topic} records: {exc}") from exc

        self._counts[topic] = self._counts.get(topic, 0) + len(records)

    def close(self) -> None:
        """Print summary."""
        print(f"JSON Lines files written to: {self.output_dir}")
        for topic, count in self._counts.items():
            print(f"  {topic}: {count} records")
