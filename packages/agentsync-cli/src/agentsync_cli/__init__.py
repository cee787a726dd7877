"""agentsync command-line interface."""
