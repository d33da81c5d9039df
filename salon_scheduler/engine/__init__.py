"""Pure scheduling engine: time arithmetic, exception resolution, slot generation."""
