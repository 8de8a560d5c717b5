"""Service layer: load orchestration and in-memory load state."""
