"""Failures raised by the ingestion and query pipelines.

Every stage wraps collaborator errors into one of these so callers only need
to handle ``RagError``.
"""


class RagError(RuntimeError):
    pass


class UnsupportedFormatError(RagError):
    pass


class SourceReadError(RagError, OSError):
    pass


class ExtractionError(RagError):
    pass


class ChunkingConfigError(RagError, ValueError):
    pass


class IndexingError(RagError):
    pass


class RetrievalError(RagError):
    pass


class GenerationError(RagError):
    pass
