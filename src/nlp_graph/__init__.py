"""nlp-graph: persist annotated sentences as a property graph and enrich
their tags from a lexical knowledge graph."""

__version__ = "0.1.0"
