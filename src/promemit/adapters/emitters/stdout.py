"""Emitter that prints metric batches instead of translating them."""

import sys
from collections.abc import Sequence
from typing import TextIO

from promemit.core.encoding.ndjson import encode_metrics
from promemit.core.models import Metric


class StdoutEmitter:
    """Implementation of EmitterPort that writes batches as NDJSON.

    Useful for debugging scrape output. Stateless; the only failure is a
    SerializationError for values JSON cannot represent, in which case
    nothing from the batch is written.

    Args:
        stream: Text stream to write to. Defaults to sys.stdout at emit time.
    """

    name = "stdout"

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def emit(self, metrics: Sequence[Metric]) -> None:
        """Write the batch to the stream, one JSON object per metric."""
        encoded = encode_metrics(metrics)
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(encoded)
        stream.flush()
