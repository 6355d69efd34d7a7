"""Per-bot session state -- registry and transcript cursoring."""
