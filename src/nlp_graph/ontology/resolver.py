from __future__ import annotations

from typing import Protocol

from ..annotation.models import Tag


class ConceptResolver(Protocol):
    """Turns a raw ontology term into an annotated Tag.

    Implementations usually run the NLP pipeline on the surface form;
    returning None means the term could not be annotated.
    """

    def resolve(self, surface_form: str, language: str) -> Tag | None: ...
