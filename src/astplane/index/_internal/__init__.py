"""Internal implementation of the structural index."""
