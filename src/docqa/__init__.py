"""Question answering over uploaded PDF documents with page citations."""

__version__ = "0.1.0"
