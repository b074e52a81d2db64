import typing

from lod.statement import Statement
from ._util import display_iri, statements_as_rdflib


TURTLEBLOCK_DELIMITER = '\n\n'
PREFIXBLOCK_START = '@prefix'


def render_turtle(
    statements: typing.Iterable[Statement],
    prefixes: typing.Optional[typing.Mapping[str, str]] = None, *,
    focus_iri: typing.Optional[str] = None,
) -> str:
    _rdflib_graph = statements_as_rdflib(statements, prefixes)
    # rdflib's turtle serializer:
    #   sorts keys alphabetically (by unicode string comparison)
    #   may emit blocks in any order
    turtleblocks = (
        turtleblock
        for turtleblock in (
            _rdflib_graph
            .serialize(format='turtle')
            .split(TURTLEBLOCK_DELIMITER)
        )
        if turtleblock.strip()  # skip empty blocks
    )
    focusblock_starts = (
        tuple(
            f'{_display} '
            for _display in {f'<{focus_iri}>', display_iri(_rdflib_graph, focus_iri)}
        )
        if focus_iri
        else ()
    )

    def turtleblock_sortkey(block):
        # build a sort-key that:
        return (
            # sorts prefix block(s) first;
            (not block.startswith(PREFIXBLOCK_START)),
            # then the focus block;
            (not (focusblock_starts and block.startswith(focusblock_starts))),
            # then sort remaining blocks longest to shortest,
            -len(block),
            # and sort blocks of the same length by simple string comparison.
            block,
        )

    sorted_turtleblocks = sorted(
        (turtleblock.strip() for turtleblock in turtleblocks),
        key=turtleblock_sortkey,
    )
    return TURTLEBLOCK_DELIMITER.join(sorted_turtleblocks) + '\n'


if __debug__:
    import unittest

    from lod.parser import parse
    from lod.primitive_rdf import COMMON_PREFIXES, DCMITYPE, IriNamespace
    from lod.statement import Literal, Resource, statement

    BLARG = IriNamespace('http://blarg.example/')

    class TestRenderTurtle(unittest.TestCase):
        def setUp(self):
            self.statements = [
                statement(BLARG.other, 'rdfs:label', Literal('other', language='en')),
                statement(BLARG.other, 'rdfs:comment', Literal('a longer block than the focus')),
                statement(BLARG.focus, 'rdfs:label', Literal('focus', language='en')),
                statement(BLARG.focus, 'rdf:type', Resource(DCMITYPE.StillImage)),
                statement(BLARG.focus, 'foaf:age', Literal('5', datatype='http://www.w3.org/2001/XMLSchema#integer')),
                statement(BLARG.focus, 'foaf:knows', Resource('_:someone')),
                statement('_:someone', 'foaf:name', Literal('Someone')),
            ]

        def test_focus_first(self):
            _turtle = render_turtle(self.statements, COMMON_PREFIXES, focus_iri=BLARG.focus)
            _blocks = _turtle.strip().split(TURTLEBLOCK_DELIMITER)
            self.assertTrue(_blocks[0].startswith('@prefix'))
            self.assertTrue(_blocks[1].startswith('<http://blarg.example/focus> '))
            self.assertIn('@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .', _blocks[0])

        def test_same_statements(self):
            _turtle = render_turtle(self.statements, COMMON_PREFIXES, focus_iri=BLARG.focus)
            _reparsed = parse(_turtle, 'text/turtle')
            self.assertEqual(len(_reparsed), len(self.statements))

            def _without_blank_nodes(statements):
                return {
                    _stmt for _stmt in statements
                    if not any(_term.value.startswith('_:') for _term in _stmt)
                }
            self.assertEqual(
                _without_blank_nodes(_reparsed),
                _without_blank_nodes(self.statements),
            )

        def test_empty(self):
            self.assertEqual(render_turtle([]).strip(), '')
