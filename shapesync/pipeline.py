"""
==============================================
Record Sources
==============================================

Feeds data points into a ShapeSyncSubscriber from an HTTP endpoint,
a JSON-lines file, or an in-memory batch.

USAGE EXAMPLES:

1. Streaming from the configured endpoint:
    from shapesync.pipeline import StreamingPipeline

    with StreamingPipeline() as pipeline:
        pipeline.start_streaming(max_records=100)

2. Manual batch processing:
    pipeline = StreamingPipeline()
    pipeline.process_batch([
        {"source": "Test", "entity": "Products", "action": "start-publish",
         "shape": {"keyNames": ["id"], "properties": ["id:integer", "name:string"]}},
        {"source": "Test", "entity": "Products", "action": "upsert",
         "shape": {"keyNames": ["id"], "properties": ["id:integer", "name:string"]},
         "data": {"id": 1, "name": "First"}},
    ])

3. JSON-lines file:
    pipeline.load_file("datapoints.jsonl")
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import requests

from shapesync.config import AppConfig, get_config
from shapesync.errors import ConfigurationError, ConnectivityError, ShapeSyncError
from shapesync.schema.shape import DataPoint
from shapesync.subscriber import ShapeSyncSubscriber

logger = logging.getLogger(__name__)


class StreamingPipeline:
    """
    High-level wrapper around ShapeSyncSubscriber for feeding it records.
    """

    def __init__(
        self,
        subscriber: Optional[ShapeSyncSubscriber] = None,
        config: Optional[AppConfig] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            subscriber: Subscriber to feed. If None, one is built from config.
            config: Optional configuration. If None, loads from environment.
        """
        self._config = config or get_config()
        self._subscriber = subscriber or ShapeSyncSubscriber(self._config)
        self._is_running = False

    @property
    def subscriber(self) -> ShapeSyncSubscriber:
        return self._subscriber

    def process_batch(self, records: Iterable[Any]) -> Dict[str, Any]:
        """
        Hand every record to the subscriber.

        A failing record is logged and counted; configuration and
        connectivity errors stop the batch.

        Args:
            records: Data points in their JSON (dict) form

        Returns:
            {"received", "succeeded", "failed", "errors"}
        """
        self._ensure_initialized()

        result: Dict[str, Any] = {"received": 0, "succeeded": 0, "failed": 0, "errors": []}
        for raw in records:
            result["received"] += 1
            try:
                self._subscriber.receive_data_point(DataPoint.from_dict(raw))
                result["succeeded"] += 1
            except (ConfigurationError, ConnectivityError):
                raise
            except ShapeSyncError as e:
                result["failed"] += 1
                result["errors"].append(str(e))
                logger.error("Record %d rejected: %s", result["received"], e)
        return result

    def load_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Process a JSON-lines file of data points."""
        path = Path(path)
        logger.info("Loading data points from %s", path)
        with open(path, "r", encoding="utf-8") as f:
            records = [json.loads(line) for line in f if line.strip()]
        return self.process_batch(records)

    def start_streaming(self, max_records: Optional[int] = None) -> Dict[str, Any]:
        """
        Poll the configured endpoint until stopped.

        Each response is one data point object or a list of them.

        Args:
            max_records: Stop after this many records (None = indefinite)

        Returns:
            Summary statistics
        """
        stream = self._config.stream
        logger.info("Starting streaming ingestion from %s", stream.data_stream_url)

        self._ensure_initialized()
        self._is_running = True
        summary: Dict[str, Any] = {"received": 0, "succeeded": 0, "failed": 0, "http_errors": 0}
        consecutive_errors = 0
        start_time = time.time()

        try:
            while self._is_running:
                if max_records is not None and summary["received"] >= max_records:
                    logger.info("Reached target of %d records", max_records)
                    break

                try:
                    records = self._fetch_records()
                    consecutive_errors = 0
                except (requests.RequestException, ValueError) as e:
                    summary["http_errors"] += 1
                    consecutive_errors += 1
                    logger.warning("Error fetching data points: %s", e)
                    if consecutive_errors >= stream.max_consecutive_errors:
                        logger.error("Too many errors, stopping")
                        break
                    time.sleep(stream.poll_interval)
                    continue

                if max_records is not None:
                    records = records[: max_records - summary["received"]]

                batch = self.process_batch(records)
                for name in ("received", "succeeded", "failed"):
                    summary[name] += batch[name]

                time.sleep(stream.poll_interval)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._is_running = False

        elapsed = time.time() - start_time
        summary["elapsed_seconds"] = round(elapsed, 2)
        summary["records_per_second"] = round(summary["received"] / elapsed, 2) if elapsed > 0 else 0
        logger.info(
            "Streamed %d records (%d failed) in %ss",
            summary["received"], summary["failed"], summary["elapsed_seconds"],
        )
        return summary

    def stop_streaming(self) -> None:
        """Stop the streaming ingestion."""
        self._is_running = False

    def close(self) -> None:
        self._subscriber.dispose()

    def _fetch_records(self) -> List[Any]:
        stream = self._config.stream
        response = requests.get(stream.data_stream_url, timeout=stream.request_timeout)
        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, list):
            return payload
        return [payload]

    def _ensure_initialized(self) -> None:
        if not self._subscriber.is_initialized:
            self._subscriber.init()

    def __enter__(self):
        self._ensure_initialized()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
