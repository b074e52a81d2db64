import typing

from lod.statement import Statement
from ._util import statements_as_rdflib


def render_ntriples(
    statements: typing.Iterable[Statement],
    prefixes: typing.Optional[typing.Mapping[str, str]] = None, *,
    focus_iri: typing.Optional[str] = None,
) -> str:
    # n-triples has no prefixes and no blocks; sort lines for stable output
    _lines = (
        statements_as_rdflib(statements)
        .serialize(format='nt')
        .splitlines()
    )
    return ''.join(f'{_line}\n' for _line in sorted(filter(None, _lines)))


if __debug__:
    import unittest

    from lod.primitive_rdf import IriNamespace
    from lod.statement import Literal, Resource, statement

    BLARG = IriNamespace('http://blarg.example/')

    class TestRenderNtriples(unittest.TestCase):
        def test_lines(self):
            _ntriples = render_ntriples([
                statement(BLARG.b, 'rdfs:label', Literal('bee', language='en')),
                statement(BLARG.a, 'rdfs:seeAlso', Resource(BLARG.b)),
            ])
            self.assertEqual(_ntriples, (
                '<http://blarg.example/a> <http://www.w3.org/2000/01/rdf-schema#seeAlso>'
                ' <http://blarg.example/b> .\n'
                '<http://blarg.example/b> <http://www.w3.org/2000/01/rdf-schema#label>'
                ' "bee"@en .\n'
            ))
