"""Entry store: the keyed collection of analysis results."""
