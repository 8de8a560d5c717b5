"""Native messaging wire protocol: frame codec and message tags."""
