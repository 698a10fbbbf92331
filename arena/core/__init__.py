"""Core data model, configuration, tick orchestrator and scheduler."""
