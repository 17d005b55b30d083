"""mdcc: assemble a Markdown context document from files selected by glob patterns."""

__version__ = "1.0.0"
