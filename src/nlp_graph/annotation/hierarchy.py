from __future__ import annotations

import threading
from collections import deque
from typing import Iterator

from .models import ParentLink, Tag


class ConceptGraph:
    """Arena of Tags addressed by stable id, with explicit parent adjacency.

    Parent links are stored on each Tag as `ParentLink.parent_id`; the arena
    resolves those ids back to Tag objects so traversals can keep a visited
    set instead of chasing object references.
    """

    def __init__(self) -> None:
        self._tags: dict[str, Tag] = {}
        self._lock = threading.RLock()

    def add(self, tag: Tag) -> Tag:
        """Register `tag`; the first Tag registered under an id wins."""
        with self._lock:
            return self._tags.setdefault(tag.id, tag)

    def adopt(self, tag: Tag) -> Tag:
        """Make `tag` the canonical instance for its id, keeping links already recorded."""
        with self._lock:
            previous = self._tags.get(tag.id)
            if previous is not None and previous is not tag:
                for link in previous.parents:
                    tag.add_parent(link.relation, link.parent_id, link.weight)
            self._tags[tag.id] = tag
            return tag

    def get(self, tag_id: str) -> Tag | None:
        return self._tags.get(tag_id)

    def link(self, child: Tag, relation: str, parent: Tag, weight: float = 1.0) -> ParentLink:
        with self._lock:
            child = self.add(child)
            self.add(parent)
            return child.add_parent(relation, parent, weight)

    def parents(self, tag_id: str) -> list[tuple[ParentLink, Tag]]:
        tag = self._tags.get(tag_id)
        if tag is None:
            return []
        out = []
        for link in tag.parents:
            parent = self._tags.get(link.parent_id)
            if parent is not None:
                out.append((link, parent))
        return out

    def ancestors(self, tag_id: str, max_depth: int | None = None) -> list[Tag]:
        """Breadth-first walk up the hierarchy; each Tag is returned once."""
        seen = {tag_id}
        out: list[Tag] = []
        queue: deque[tuple[str, int]] = deque([(tag_id, 0)])
        while queue:
            current, depth = queue.popleft()
            if max_depth is not None and depth >= max_depth:
                continue
            for _link, parent in self.parents(current):
                if parent.id in seen:
                    continue
                seen.add(parent.id)
                out.append(parent)
                queue.append((parent.id, depth + 1))
        return out

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def __iter__(self) -> Iterator[Tag]:
        return iter(list(self._tags.values()))
