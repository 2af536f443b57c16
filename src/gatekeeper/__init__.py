"""GateKeeper: retrieval-augmented question answering over a personal knowledge base."""

__version__ = "0.1.0"
