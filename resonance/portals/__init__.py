"""Portal wiring: shared context, navigator and the two route tables."""
