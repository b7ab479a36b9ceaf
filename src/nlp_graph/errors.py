from __future__ import annotations


class NlpGraphError(Exception):
    """Base class for errors raised by nlp-graph."""


class InvalidSpanError(NlpGraphError, ValueError):
    """A span was built with a negative begin offset."""


class UnsupportedOperationError(NlpGraphError, NotImplementedError):
    """The requested entry point is not supported."""


class OntologyError(NlpGraphError):
    """The ontology service failed or returned a payload we cannot read."""
