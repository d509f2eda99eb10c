"""Message repository backends."""
