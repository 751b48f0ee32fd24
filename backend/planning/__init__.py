"""Task allocation scheduler backend."""
