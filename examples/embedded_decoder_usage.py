"""
Example: Driving TraceOrchestrator from your own code with a custom decoder.

This shows the two seams an embedding tool plugs into:
- The decoder: anything with pump(byte) and shutdown()
- The lifecycle: signal handling and one-shot cleanup around the loop
"""

from collections import Counter

from itmsplit.core.lifecycle import LifecycleController
from itmsplit.core.shutdown import ShutdownFlag
from itmsplit.models.source_config import FileSourceConfig, NetworkSourceConfig
from itmsplit.orchestrator import TraceOrchestrator


class HistogramDecoder:
    """Counts byte values; stands in for a real ITM decoder."""

    def __init__(self):
        self.histogram = Counter()

    def pump(self, byte: int) -> None:
        self.histogram[byte] += 1

    def shutdown(self) -> None:
        print(f"Most common bytes: {self.histogram.most_common(4)}")


# =============================================================================
# Example 1: Replay a capture file once
# =============================================================================
shutdown = ShutdownFlag()
decoder = HistogramDecoder()
orchestrator = TraceOrchestrator(
    FileSourceConfig(path="capture.bin", terminate_on_exhaustion=True),  # ← stop at end of file
    decoder,
    shutdown=shutdown,
)

with LifecycleController(shutdown, decoder):
    reason = orchestrator.run()
shutdown.close()
print(f"Replay finished: {reason.value}, {orchestrator.total_bytes} bytes")


# =============================================================================
# Example 2: Follow a live trace server until Ctrl-C
# =============================================================================
shutdown = ShutdownFlag()
decoder = HistogramDecoder()
orchestrator = TraceOrchestrator(
    NetworkSourceConfig(host="localhost", port=3443),  # ← reconnects forever
    decoder,
    shutdown=shutdown,
)

with LifecycleController(shutdown, decoder) as lifecycle:
    orchestrator.run()
shutdown.close()
print(f"Stopped by signal: {lifecycle.signalled}")
