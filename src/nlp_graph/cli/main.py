from __future__ import annotations

import argparse
import uuid

from rich.console import Console
from rich.tree import Tree

from nlp_graph.settings import settings

console = Console()


def _configure_logging() -> None:
    import logging

    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _neo4j_database():
    from nlp_graph.graph.neo4j_store import Neo4jConfig, Neo4jDatabase
    from nlp_graph.graph.schema import resolve_schema

    if not (settings.neo4j_uri and settings.neo4j_user and settings.neo4j_password):
        raise SystemExit("Neo4j not configured. Set NLP_GRAPH_NEO4J_URI/USER/PASSWORD.")
    cfg = Neo4jConfig(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
    )
    return Neo4jDatabase(cfg, resolve_schema(settings.schema_overrides))


def hierarchy_tree(graph, tag, max_depth: int) -> Tree:
    """Render the parents of `tag` recorded in `graph`; each Tag appears once."""
    root = Tree(f"[bold]{tag.lemma}[/bold] ({tag.language})")
    seen = {tag.id}
    frontier = [(tag, root, 0)]
    while frontier:
        current, branch, depth = frontier.pop()
        if depth >= max_depth:
            continue
        for link, parent in graph.parents(current.id):
            child = branch.add(f"{link.relation} → {parent.lemma} ({parent.language}) [dim]{link.weight:.2f}[/dim]")
            if parent.id not in seen:
                seen.add(parent.id)
                frontier.append((parent, child, depth + 1))
    return root


def cmd_version() -> int:
    from nlp_graph import __version__

    print(__version__)
    return 0


def cmd_enrich(args: argparse.Namespace) -> int:
    _configure_logging()
    from nlp_graph.annotation.models import Tag
    from nlp_graph.ontology import DEFAULT_ADMITTED_RELATIONS, ConceptEnricher, ConceptNetClient

    tag = Tag(args.word, args.lang)
    with ConceptNetClient() as client:
        enricher = ConceptEnricher(client, depth=args.depth)
        result = enricher.import_hierarchy(
            tag,
            args.lang,
            filter_language=args.filter_lang,
            depth=args.depth,
            admitted_relations=args.relation or DEFAULT_ADMITTED_RELATIONS,
        )

    console.print(hierarchy_tree(enricher.graph, tag, enricher.depth))
    console.print(f"{len(result.tags)} neighbors linked")
    for err in result.errors:
        console.print(f"[yellow]partial[/yellow] {err.key} ({err.language}, depth {err.depth}): {err.message}")
    return 0 if result.complete else 2


def cmd_persist(args: argparse.Namespace) -> int:
    _configure_logging()
    from nlp_graph.annotation.hierarchy import ConceptGraph
    from nlp_graph.annotation.loader import load_document_file
    from nlp_graph.graph.persister import SentencePersister

    document_id, sentences = load_document_file(args.path)
    concepts = None
    if args.enrich:
        from nlp_graph.ontology import ConceptEnricher, ConceptNetClient

        concepts = ConceptGraph()
        with ConceptNetClient() as client:
            enricher = ConceptEnricher(client, graph=concepts)
            for sentence in sentences:
                enricher.enrich_sentence(sentence, args.lang, filter_language=True)

    tx_id = str(uuid.uuid4())
    with _neo4j_database() as db:
        for sentence in sentences:

            def work(store, s=sentence):
                return SentencePersister(store, db.schema, concepts=concepts).persist(s, document_id, tx_id)

            db.write(work)
    console.print(f"Persisted {len(sentences)} sentences of {document_id} (tx {tx_id})")
    return 0


def cmd_ensure_schema() -> int:
    _configure_logging()
    with _neo4j_database() as db:
        db.ensure_schema()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="nlp-graph")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version").set_defaults(func=lambda _a: cmd_version())

    enrich = sub.add_parser("enrich", help="Expand a word into its ConceptNet hierarchy")
    enrich.add_argument("word")
    enrich.add_argument("--lang", default="en")
    enrich.add_argument("--depth", type=int, default=None)
    enrich.add_argument("--relation", action="append", default=None, help="Admitted relation (repeatable)")
    enrich.add_argument("--filter-lang", action="store_true", help="Keep only edges within --lang")
    enrich.set_defaults(func=cmd_enrich)

    persist = sub.add_parser("persist", help="Persist an annotation JSON document into Neo4j")
    persist.add_argument("path")
    persist.add_argument("--enrich", action="store_true", help="Import tag hierarchies before persisting")
    persist.add_argument("--lang", default="en")
    persist.set_defaults(func=cmd_persist)

    sub.add_parser("ensure-schema").set_defaults(func=lambda _a: cmd_ensure_schema())

    return p


def app() -> None:
    parser = build_parser()
    args = parser.parse_args()
    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    app()
