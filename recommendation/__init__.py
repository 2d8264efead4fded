"""University recommendation engine."""
