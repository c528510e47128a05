"""The analysis queue: batching, cancellation and the sequential job processor."""
