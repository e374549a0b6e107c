"""HTTP layer for the StayHub booking engine."""
