"""Filesystem and process access: extension scanning, browser discovery."""
