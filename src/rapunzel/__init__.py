"""rapunzel: native messaging helper that loads local extensions into Firefox."""

__version__ = "1.0.0"
