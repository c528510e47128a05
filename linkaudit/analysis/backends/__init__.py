"""Analysis client backends."""
