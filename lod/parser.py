'''parse rdf text into `Statement`s (thin wrapper around rdflib parsers)
'''
import logging
import typing

import rdflib
import rdflib.compare

from .exceptions import ParseError
from .statement import Literal, Resource, Statement, Term


logger = logging.getLogger(__name__)

# rdflib parser format, by mediatype (matched as a prefix, so
# parameters like `;charset=utf-8` are allowed)
RDFLIB_FORMAT_BY_MEDIATYPE = {
    'text/turtle': 'turtle',
    'application/rdf+xml': 'xml',
}
RDF_MEDIATYPES = tuple(RDFLIB_FORMAT_BY_MEDIATYPE.keys())


def is_rdf_mediatype(mediatype: typing.Optional[str]) -> bool:
    '''
    >>> is_rdf_mediatype('text/turtle; charset=utf-8')
    True
    >>> is_rdf_mediatype('text/html')
    False
    '''
    return _rdflib_format(mediatype) is not None


def _rdflib_format(mediatype: typing.Optional[str]) -> typing.Optional[str]:
    _mediatype = (mediatype or '').strip().lower()
    for _rdf_mediatype, _format in RDFLIB_FORMAT_BY_MEDIATYPE.items():
        if _mediatype.startswith(_rdf_mediatype):
            return _format
    return None


def parse(rdf_text: str, mediatype: str) -> list[Statement]:
    _format = _rdflib_format(mediatype)
    if _format is None:
        raise ParseError(f'no parser for mediatype "{mediatype}"')
    _rdflib_graph = rdflib.Graph()
    try:
        _rdflib_graph.parse(data=rdf_text, format=_format)
    except Exception as err:  # rdflib parsers raise all sorts
        raise ParseError(
            f'could not parse {mediatype} ({err.__class__.__name__}: {err})'
        ) from err
    _statements = list(statements_from_rdflib(_with_stable_blank_nodes(_rdflib_graph)))
    if not _statements:
        logger.debug('parse: no statements in %s text', mediatype)
    return _statements


def _with_stable_blank_nodes(rdflib_graph: rdflib.Graph):
    # rdflib labels blank nodes randomly on each parse; canonical labels are
    # derived from graph content, so the same document always gives the
    # same blank-node ids (and the same statement keys)
    _has_blank_nodes = any(
        isinstance(_term, rdflib.BNode)
        for _triple in rdflib_graph
        for _term in _triple
    )
    if not _has_blank_nodes:
        return rdflib_graph
    return rdflib.compare.to_canonical_graph(rdflib_graph)


def statements_from_rdflib(rdflib_graph: rdflib.Graph) -> typing.Iterable[Statement]:
    for (_subj, _pred, _obj) in rdflib_graph:
        if not isinstance(_pred, rdflib.URIRef):
            raise ParseError(f'cannot handle non-iri predicates (got {_pred})')
        yield Statement(
            _term_from_rdflib(_subj),
            Resource(str(_pred)),
            _term_from_rdflib(_obj),
        )


def _term_from_rdflib(rdflib_term) -> Term:
    if isinstance(rdflib_term, rdflib.URIRef):
        return Resource(str(rdflib_term))
    if isinstance(rdflib_term, rdflib.BNode):
        return Resource(f'_:{rdflib_term}')
    if isinstance(rdflib_term, rdflib.Literal):
        if rdflib_term.language:
            return Literal(str(rdflib_term), language=rdflib_term.language)
        return Literal(
            str(rdflib_term),
            datatype=(str(rdflib_term.datatype) if rdflib_term.datatype else None),
        )
    raise ParseError(f'how term? ({rdflib_term!r})')


if __debug__:
    import unittest

    from .primitive_rdf import DCTERMS, IriNamespace, RDFS, SCHEMA, XSD

    BLARG = IriNamespace('http://blarg.example/')

    PARSER_TURTLE = '''
        @prefix dcterms: <http://purl.org/dc/terms/> .
        @prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
        @prefix schema: <http://schema.org/> .
        @prefix blarg: <http://blarg.example/> .

        <http://blarg.example/something>
          dcterms:title "Bar" ;
          rdfs:label "Foo"@en ;
          schema:name "Baz" ;
          blarg:appelation "5"^^<http://www.w3.org/2001/XMLSchema#integer> .
    '''

    PARSER_RDFXML = '''<?xml version="1.0" encoding="utf-8" ?>
        <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
                 xmlns:dc="http://purl.org/dc/terms/"
                 xmlns:rdfs="http://www.w3.org/2000/01/rdf-schema#"
                 xmlns:schema="http://schema.org/"
                 xmlns:blarg="http://blarg.example/">
          <rdf:Description rdf:about="http://blarg.example/something">
            <dc:title>Bar</dc:title>
            <rdfs:label xml:lang="en">Foo</rdfs:label>
            <schema:name>Baz</schema:name>
            <blarg:appelation rdf:datatype="http://www.w3.org/2001/XMLSchema#integer">5</blarg:appelation>
          </rdf:Description>
        </rdf:RDF>
    '''

    class TestParse(unittest.TestCase):
        def test_parse(self):
            _from_turtle = parse(PARSER_TURTLE, 'text/turtle')
            _from_rdfxml = parse(PARSER_RDFXML, 'application/rdf+xml')
            self.assertEqual(len(_from_turtle), 4)
            self.assertEqual(set(_from_turtle), set(_from_rdfxml))
            _subj = Resource(BLARG.something)
            self.assertEqual(set(_from_turtle), {
                Statement(_subj, Resource(DCTERMS.title), Literal('Bar')),
                Statement(_subj, Resource(RDFS.label), Literal('Foo', language='en')),
                Statement(_subj, Resource(SCHEMA.name), Literal('Baz')),
                Statement(
                    _subj,
                    Resource(BLARG.appelation),
                    Literal('5', datatype=XSD.integer),
                ),
            })

        def test_mediatype_parameters(self):
            self.assertEqual(
                len(parse(PARSER_TURTLE, 'text/turtle; charset=utf-8')),
                4,
            )

        def test_bad_mediatype(self):
            with self.assertRaises(ParseError):
                parse(PARSER_TURTLE, 'text/html')
            with self.assertRaises(ParseError):
                parse(PARSER_TURTLE, None)

        def test_malformed(self):
            with self.assertRaises(ParseError):
                parse('<http://blarg.example/a> this is not turtle', 'text/turtle')
            with self.assertRaises(ParseError):
                parse('<rdf:RDF', 'application/rdf+xml')

        def test_blank_nodes(self):
            _statements = parse(
                '<http://blarg.example/a> <http://blarg.example/b> [ <http://blarg.example/c> "d" ] .',
                'text/turtle',
            )
            self.assertEqual(len(_statements), 2)
            _bnode_subjects = {
                _stmt.subject.value
                for _stmt in _statements
                if _stmt.subject.value.startswith('_:')
            }
            self.assertEqual(len(_bnode_subjects), 1)

        def test_blank_nodes_stable(self):
            _turtle = '''
                @prefix blarg: <http://blarg.example/> .
                blarg:a blarg:b [ blarg:c "d" ] ;
                    blarg:e _:x .
                _:x blarg:f "g" .
            '''
            _first = parse(_turtle, 'text/turtle')
            _second = parse(_turtle, 'text/turtle')
            self.assertEqual(len(_first), 4)
            self.assertEqual(set(_first), set(_second))
            self.assertEqual(
                {_stmt.key for _stmt in _first},
                {_stmt.key for _stmt in _second},
            )
