"""Value structures produced and consumed by the analytics engine."""
