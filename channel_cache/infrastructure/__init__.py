"""Infrastructure layer: cache tiers, transports and metrics export."""
