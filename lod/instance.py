'''an Instance is everything a context knows about one subject uri


instance (noun)
    - an occurrence of something
    - a case offered as an exemplification or a precedent; an example

    (gathered from https://en.wiktionary.org/wiki/instance )
'''
import logging
import typing

from .exceptions import FilterQueryError
from .primitive_rdf import RDF, expand_prefix
from .statement import Statement, Term

if typing.TYPE_CHECKING:
    from .context import LodContext


logger = logging.getLogger(__name__)


class Instance:
    '''de-duplicated statements about one subject, in the order first seen

    iterating an Instance gives Statements; `instance[query]` (same as
    `instance.filter(query)`) gives a FilteredInstance
    '''
    _context: 'LodContext'  # the context this instance belongs to;
    _uri: str               # the subject uri all statements share;
    _model: list            # statements, in insertion order;
    _statement_keys: set    # keys of statements already in the model.

    # # # # # # # # # # # #
    # BEGIN public methods

    def __init__(self, context: 'LodContext', uri: str, model=()):
        self._context = context
        self._uri = uri
        self._model = []
        self._statement_keys = set()
        for _statement in model:
            self._add(_statement)

    @property
    def context(self) -> 'LodContext':
        return self._context

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def model(self) -> tuple:
        return tuple(self._model)

    def add(self, statement: Statement) -> bool:
        '''add the statement, unless an equivalent one is already here

        returns True if it was added
        '''
        return self._add(statement)

    def merge(self, statements: typing.Iterable[Statement]) -> int:
        '''add each statement (skipping known ones); returns how many added
        '''
        return sum(1 for _statement in statements if self.add(_statement))

    def exists(self) -> bool:
        # is this uri in the context's index (not just a detached instance)?
        return self._context.locate(self._uri) is not None

    def filter(self, query: str) -> 'FilteredInstance':
        '''statements with any of the comma-separated predicates in `query`
        (full or prefixed iris, like 'dcterms:title,rdfs:label'), ranked
        by the context's language preferences

        a literal tagged with a language not in `context.languages` is left
        out; untagged literals and iri objects are always included, after
        any literals in a preferred language
        '''
        _predicates = self._parse_query(query)
        _languages = [_lang.lower() for _lang in self._context.languages]
        _matching = (
            _statement
            for _statement in self._model
            if (
                _statement.predicate.value in _predicates
                and _language_allowed(_statement.object, _languages)
            )
        )
        # sorted() is stable, so equal ranks keep model order
        _ranked = sorted(
            _matching,
            key=lambda _statement: _language_rank(_statement.object, _languages),
        )
        return FilteredInstance(self._context, self._uri, _ranked)

    def has_type(self, *rdftypes: str) -> bool:
        '''does this instance have any of the given rdf:types?
        (full or prefixed iris)
        '''
        _instance_type_iris = {_obj.value for _obj in self.filter('rdf:type')}
        return any(
            expand_prefix(_rdftype, self._context.prefixes) in _instance_type_iris
            for _rdftype in rdftypes
        )

    def to_turtle(self) -> str:
        from .render import render_turtle
        return render_turtle(
            self._model,
            self._context.prefixes,
            focus_iri=self._uri,
        )

    def __getitem__(self, query: str) -> 'FilteredInstance':
        return self.filter(query)

    def __contains__(self, query: str) -> bool:
        # "in" when the query matches at least one statement
        return len(self.filter(query)) > 0

    def __iter__(self) -> typing.Iterator:
        return iter(self.model)

    def __len__(self):
        return len(self._model)

    def __str__(self):
        return self._uri

    def __repr__(self):
        return f'<{self.__class__.__qualname__} {self._uri} ({len(self)} statements)>'

    # END public methods
    # # # # # # # # # # #

    def _add(self, statement: Statement) -> bool:
        _key = statement.key
        if _key in self._statement_keys:
            return False
        self._model.append(statement)
        self._statement_keys.add(_key)
        return True

    def _parse_query(self, query) -> frozenset:
        if not isinstance(query, str):
            raise FilterQueryError(f'expected a query string (got {query!r})')
        _pieces = [_piece.strip() for _piece in query.split(',')]
        if not all(_pieces):
            raise FilterQueryError(f'empty predicate in query "{query}"')
        return frozenset(
            expand_prefix(_piece, self._context.prefixes)
            for _piece in _pieces
        )


class FilteredInstance(Instance):
    '''a read-only, language-ranked selection from an Instance

    iterating gives the statements' objects (Terms), not the statements;
    as a string, it's the value of the first (most preferred) object
    '''
    def add(self, statement):
        raise TypeError(f'{self.__class__.__qualname__} is read-only')

    def merge(self, statements):
        raise TypeError(f'{self.__class__.__qualname__} is read-only')

    def __iter__(self) -> typing.Iterator[Term]:
        return (_statement.object for _statement in self.model)

    def __str__(self):
        return (self._model[0].object.value if self._model else '')


def _language_allowed(obj: Term, languages: list) -> bool:
    if obj.is_resource() or not obj.language:
        return True  # no language, nothing to disallow
    return obj.language.lower() in languages


def _language_rank(obj: Term, languages: list) -> int:
    if (not obj.is_resource()) and obj.language:
        try:
            return languages.index(obj.language.lower())
        except ValueError:
            pass
    return len(languages)  # after every preferred language


if __debug__:
    import unittest

    from .primitive_rdf import FOAF, IriNamespace
    from .statement import Literal, Resource, statement

    BLARG = IriNamespace('http://blarg.example/')
    TEST_URI = BLARG['']

    def _test_statements():
        return [
            statement(TEST_URI, 'foaf:page', Resource(BLARG.page1)),
            statement(TEST_URI, 'foaf:page', Resource(BLARG.page2)),
            statement(TEST_URI, 'rdfs:seeAlso', Resource(BLARG.page3)),
            statement(TEST_URI, 'rdf:type', Resource('http://purl.org/dc/dcmitype/StillImage')),
            statement(TEST_URI, 'rdf:type', Resource('http://purl.org/ontology/po/TVContent')),
            statement(TEST_URI, 'schema:name', Literal('Y. Chettner', language='en-gb')),
            statement(TEST_URI, 'rdfs:label', Literal('Yoinch Chettner', language='en-gb')),
            statement(TEST_URI, 'dcterms:title', Literal('Monsieur Chettner', language='fr-fr')),
            statement(TEST_URI, 'dcterms:title', Literal('Herr Chettner', language='de-de')),
        ]

    def _test_instance(languages=None):
        from .context import LodContext  # (avoid import cycle)
        _context = LodContext()
        if languages is not None:
            _context.languages = languages
        return Instance(_context, TEST_URI, _test_statements())

    class TestInstance(unittest.TestCase):
        def test_merge(self):
            _instance = _test_instance()
            _instance_again = Instance(_instance.context, TEST_URI)
            self.assertEqual(_instance_again.merge(_test_statements()), 9)
            self.assertEqual(len(_instance_again.model), 9)
            # merging again adds nothing
            self.assertEqual(_instance_again.merge(_test_statements()), 0)
            self.assertEqual(_instance_again.model, _instance.model)

        def test_add(self):
            _instance = _test_instance()
            _new = statement(TEST_URI, 'rdfs:label', Literal('Yoinch Chettner', language='en'))
            self.assertTrue(_instance.add(_new))
            self.assertFalse(_instance.add(_new))
            self.assertFalse(_instance.add(_test_statements()[0]))
            self.assertEqual(len(_instance), 10)
            self.assertEqual(_instance.model[-1], _new)

        def test_filter(self):
            _instance = _test_instance()
            _filtered = _instance.filter('foaf:page')
            self.assertIsInstance(_filtered, FilteredInstance)
            self.assertEqual(len(_filtered.model), 2)
            for _statement in _filtered.model:
                self.assertEqual(_statement.predicate.value, FOAF.page)
            self.assertEqual(_filtered.uri, TEST_URI)

        def test_filter_full_iris(self):
            _instance = _test_instance()
            self.assertEqual(
                _instance.filter(f' {FOAF.page} ,rdfs:seeAlso').model,
                _instance.filter('foaf:page,rdfs:seeAlso').model,
            )

        def test_iteration(self):
            _instance = _test_instance()
            self.assertEqual(
                [_statement.object.value for _statement in _instance],
                [
                    'http://blarg.example/page1',
                    'http://blarg.example/page2',
                    'http://blarg.example/page3',
                    'http://purl.org/dc/dcmitype/StillImage',
                    'http://purl.org/ontology/po/TVContent',
                    'Y. Chettner',
                    'Yoinch Chettner',
                    'Monsieur Chettner',
                    'Herr Chettner',
                ],
            )
            # filtered instances give objects instead
            self.assertEqual(
                list(_instance['foaf:page']),
                [Resource(BLARG.page1), Resource(BLARG.page2)],
            )

        def test_getitem(self):
            _instance = _test_instance()
            self.assertEqual(len(_instance['foaf:page'].model), 2)
            self.assertEqual(len(_instance['foaf:page,rdfs:seeAlso'].model), 3)
            self.assertNotIn('fo:po', _instance)
            self.assertIn('foaf:page', _instance)

        def test_has_type(self):
            _instance = _test_instance()
            self.assertTrue(_instance.has_type('http://purl.org/dc/dcmitype/StillImage'))
            # matching one type out of several
            self.assertTrue(_instance.has_type(
                BLARG.thing,
                'http://purl.org/dc/dcmitype/StillImage',
            ))
            self.assertTrue(_instance.has_type(
                BLARG.thing,
                'http://smoo.example/foo',
                'http://purl.org/ontology/po/TVContent',
            ))
            # not matching any
            self.assertFalse(_instance.has_type(BLARG.thing))
            self.assertFalse(_instance.has_type())
            # matching on short form
            self.assertTrue(_instance.has_type('dcmitype:StillImage'))
            self.assertTrue(_instance.has_type(BLARG.thing, 'po:TVContent'))
            self.assertEqual(
                _instance.has_type('dcmitype:MovingImage'),
                _instance.has_type('http://purl.org/dc/dcmitype/MovingImage'),
            )

        def test_language_preference(self):
            _instance = _test_instance(languages=['fr-fr', 'en-gb'])
            _filtered = _instance['rdfs:label,schema:name,dcterms:title']
            self.assertEqual(str(_filtered), 'Monsieur Chettner')
            # ties keep model order
            self.assertEqual(
                [_obj.value for _obj in _filtered],
                ['Monsieur Chettner', 'Y. Chettner', 'Yoinch Chettner'],
            )

        def test_filter_with_languages(self):
            _instance = _test_instance(languages=['de-de'])
            _filtered = _instance.filter('dcterms:title')
            self.assertEqual(str(_filtered), 'Herr Chettner')
            self.assertEqual(len(_filtered), 1)

        def test_language_exclusion_keeps_untagged(self):
            _instance = _test_instance(languages=['de-de'])
            _instance.merge([
                statement(TEST_URI, 'rdfs:label', Literal('Yoinch')),
                statement(TEST_URI, 'rdfs:label', Resource(BLARG.yoinch)),
                statement(TEST_URI, 'rdfs:label', Literal('Joinch', language='DE-DE')),
            ])
            self.assertEqual(
                [_obj.value for _obj in _instance['rdfs:label']],
                ['Joinch', 'Yoinch', BLARG.yoinch],
            )

        def test_untagged_after_preferred(self):
            _instance = _test_instance(languages=['en-gb', 'fr-fr'])
            _instance.merge([
                statement(TEST_URI, 'dcterms:title', Literal('Chettner')),
                statement(TEST_URI, 'dcterms:title', Literal('M. Chettner', language='fr-fr')),
            ])
            self.assertEqual(
                [_obj.value for _obj in _instance['dcterms:title']],
                ['Monsieur Chettner', 'M. Chettner', 'Chettner'],
            )

        def test_to_string(self):
            _instance = _test_instance()
            self.assertEqual(str(_instance), TEST_URI)
            # a filter matching nothing stringifies to ''
            self.assertEqual(str(_instance['boogle:woogle']), '')
            self.assertEqual(len(_instance['boogle:woogle']), 0)

        def test_read_only(self):
            _instance = _test_instance()
            with self.assertRaises(AttributeError):
                _instance.uri = 'http://boo.example/'
            with self.assertRaises(AttributeError):
                _instance.model = []
            with self.assertRaises(AttributeError):
                _instance.model.append(_test_statements()[0])
            _filtered = _instance['foaf:page']
            with self.assertRaises(TypeError):
                _filtered.add(_test_statements()[0])
            with self.assertRaises(TypeError):
                _filtered.merge(_test_statements())

        def test_bad_query(self):
            _instance = _test_instance()
            for _bad_query in ('', 'foaf:page,', ' , ', None, 7):
                with self.assertRaises(FilterQueryError):
                    _instance.filter(_bad_query)

        def test_exists(self):
            _instance = _test_instance()
            self.assertFalse(_instance.exists())  # made outside the context
            _instance.context.load_statements(_test_statements())
            self.assertTrue(_instance.exists())
            self.assertTrue(_instance.context.locate(TEST_URI).exists())
