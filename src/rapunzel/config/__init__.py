"""Process settings, the per-user config file, and logging setup."""
