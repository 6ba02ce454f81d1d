"""UIForge: natural language to verified, safely interpreted UI markup."""

__version__ = "0.1.0"
