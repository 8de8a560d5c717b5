"""Domain types: extension descriptors, load methods, and error codes."""
