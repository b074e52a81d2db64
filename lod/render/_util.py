import typing

import rdflib

from lod.statement import Statement, Term


def statements_as_rdflib(
    statements: typing.Iterable[Statement],
    prefixes: typing.Optional[typing.Mapping[str, str]] = None,
) -> rdflib.Graph:
    _rdflib_graph = rdflib.Graph(bind_namespaces='none')
    for _prefix, _namespace_iri in (prefixes or {}).items():
        _rdflib_graph.bind(_prefix, rdflib.Namespace(_namespace_iri))
    for (_subj, _pred, _obj) in statements:
        _rdflib_graph.add((
            term_as_rdflib(_subj),
            rdflib.URIRef(_pred.value),
            term_as_rdflib(_obj),
        ))
    return _rdflib_graph


def term_as_rdflib(term: Term) -> rdflib.term.Node:
    if term.is_resource():
        if term.value.startswith('_:'):
            return rdflib.BNode(term.value[2:])
        return rdflib.URIRef(term.value)
    return rdflib.Literal(
        term.value,
        lang=term.language,
        datatype=(rdflib.URIRef(term.datatype) if term.datatype else None),
    )


# oft-repeated utility
def display_iri(rdflib_graph: rdflib.Graph, iri: str) -> str:
    return rdflib_graph.namespace_manager.normalizeUri(rdflib.URIRef(iri))
