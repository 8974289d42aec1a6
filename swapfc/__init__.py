"""swapfc - dynamic swap file pool for Linux hosts."""

__version__ = "0.1.0"
