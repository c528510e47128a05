"""Linkaudit: queue URLs for analysis and track them through a status pipeline."""
