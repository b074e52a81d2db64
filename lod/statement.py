'''rdf terms and statements, with canonical strings and de-duplication keys
'''
import dataclasses
import hashlib
import json
import logging
import typing

from .primitive_rdf import COMMON_PREFIXES, expand_prefix


logger = logging.getLogger(__name__)

TermSpec = typing.Mapping[str, typing.Optional[str]]  # {'value', 'type', ...}


@dataclasses.dataclass(frozen=True)
class Term:
    value: str

    def is_resource(self) -> bool:
        raise NotImplementedError

    def __str__(self):
        return self.value


@dataclasses.dataclass(frozen=True)
class Resource(Term):
    '''an rdf term identified by iri (or a `_:`-prefixed blank node label)
    '''
    def is_resource(self) -> bool:
        return True


@dataclasses.dataclass(frozen=True)
class Literal(Term):
    '''an rdf literal, with at most one of `language` and `datatype`
    '''
    language: typing.Optional[str] = None
    datatype: typing.Optional[str] = None

    def __post_init__(self):
        if self.language and self.datatype:
            raise ValueError(
                'expected at most one of `language` and `datatype`,'
                f' not both (got {self.language!r} and {self.datatype!r})'
            )

    def is_resource(self) -> bool:
        return False


class Statement(typing.NamedTuple):
    subject: Resource
    predicate: Resource
    object: Term

    def to_string(self) -> str:
        '''n-triples-like canonical form (without the final " .")

        >>> _stmt = Statement(
        ...     Resource('http://res.example/Frank'),
        ...     Resource('http://www.w3.org/2000/01/rdf-schema#label'),
        ...     Literal('Frank', language='en-gb'),
        ... )
        >>> print(_stmt.to_string())
        <http://res.example/Frank> <http://www.w3.org/2000/01/rdf-schema#label> "Frank"@en-gb
        '''
        return f'<{self.subject}> <{self.predicate}> {_object_string(self.object)}'

    @property
    def key(self) -> str:
        # two statements are "the same" iff their canonical strings are
        return hashlib.sha256(self.to_string().encode()).hexdigest()

    def __str__(self):
        return self.to_string()


def _object_string(obj: Term) -> str:
    if obj.is_resource():
        return f'<{obj.value}>'
    # json string escaping is injective, so distinct values stay distinct
    _quoted = json.dumps(obj.value, ensure_ascii=False)
    if obj.language:
        return f'{_quoted}@{obj.language}'
    if obj.datatype:
        return f'{_quoted}^^<{obj.datatype}>'
    return _quoted


def term_from_spec(spec: TermSpec, prefixes=COMMON_PREFIXES) -> Term:
    '''build a term from a raw spec like
    `{'value': '5', 'type': 'literal', 'datatype': 'xsd:integer'}` or
    `{'value': 'foaf:Person', 'type': 'uri'}`

    a literal spec with both `lang` and `datatype` keeps `lang`
    '''
    _type = spec.get('type')
    if _type == 'uri':
        return Resource(expand_prefix(spec['value'], prefixes))
    if _type == 'literal':
        _lang = spec.get('lang')
        _datatype = spec.get('datatype')
        if _lang and _datatype:
            logger.warning(
                'literal %r has both lang (%s) and datatype (%s); keeping lang',
                spec['value'], _lang, _datatype,
            )
            _datatype = None
        return Literal(
            spec['value'],
            language=(_lang or None),
            datatype=(expand_prefix(_datatype, prefixes) if _datatype else None),
        )
    raise ValueError(f'expected term spec type "uri" or "literal" (got {spec})')


def statement(subj, pred, obj_or_spec, prefixes=COMMON_PREFIXES) -> Statement:
    '''convenience wrapper for Statement

    subject and predicate may be Resources or (prefixed) strings;
    the object may be a Term or a raw spec (see `term_from_spec`)
    >>> statement('http://foo.example/', 'rdfs:seeAlso', {
    ...     'value': 'foaf:Person', 'type': 'uri',
    ... }).predicate.value
    'http://www.w3.org/2000/01/rdf-schema#seeAlso'
    '''
    _subj = (
        subj
        if isinstance(subj, Resource)
        else Resource(expand_prefix(subj, prefixes))
    )
    _pred = (
        pred
        if isinstance(pred, Resource)
        else Resource(expand_prefix(pred, prefixes))
    )
    _obj = (
        obj_or_spec
        if isinstance(obj_or_spec, Term)
        else term_from_spec(obj_or_spec, prefixes)
    )
    return Statement(_subj, _pred, _obj)


if __debug__:
    import unittest

    from .primitive_rdf import IriNamespace, RDFS, XSD

    BLARG = IriNamespace('https://blarg.example/')

    class TestTerms(unittest.TestCase):
        def test_resource(self):
            _res = Resource(BLARG.foo)
            self.assertTrue(_res.is_resource())
            self.assertEqual(str(_res), 'https://blarg.example/foo')
            self.assertEqual(_res, Resource(BLARG.foo))
            self.assertNotEqual(_res, Literal(BLARG.foo))

        def test_literal(self):
            _lit = Literal('blurbl', language='en')
            self.assertFalse(_lit.is_resource())
            self.assertEqual(str(_lit), 'blurbl')
            self.assertEqual(_lit.language, 'en')
            self.assertIsNone(_lit.datatype)
            with self.assertRaises(ValueError):
                Literal('blurbl', language='en', datatype=XSD.string)

        def test_immutable(self):
            with self.assertRaises(dataclasses.FrozenInstanceError):
                Resource(BLARG.foo).value = BLARG.bar

    class TestStatement(unittest.TestCase):
        def test_literal_with_datatype(self):
            _stmt = statement(BLARG.frank, 'foaf:age', {
                'value': '5',
                'type': 'literal',
                'datatype': 'xsd:integer',
            })
            self.assertEqual(_stmt.subject, Resource(BLARG.frank))
            self.assertEqual(_stmt.predicate.value, 'http://xmlns.com/foaf/0.1/age')
            self.assertEqual(_stmt.object, Literal('5', datatype=XSD.integer))
            self.assertEqual(
                _stmt.to_string(),
                '<https://blarg.example/frank> <http://xmlns.com/foaf/0.1/age>'
                ' "5"^^<http://www.w3.org/2001/XMLSchema#integer>',
            )

        def test_literal_with_language(self):
            _stmt = statement(BLARG.frank, 'rdfs:label', {
                'value': 'Frank',
                'type': 'literal',
                'lang': 'en-gb',
            })
            self.assertEqual(_stmt.predicate, Resource(RDFS.label))
            self.assertEqual(_stmt.object, Literal('Frank', language='en-gb'))
            self.assertEqual(
                str(_stmt),
                '<https://blarg.example/frank>'
                ' <http://www.w3.org/2000/01/rdf-schema#label> "Frank"@en-gb',
            )

        def test_object_uri(self):
            _stmt = statement(BLARG.frank, 'rdfs:seeAlso', {
                'value': 'dcmitype:StillImage',
                'type': 'uri',
            })
            self.assertEqual(
                _stmt.object,
                Resource('http://purl.org/dc/dcmitype/StillImage'),
            )
            self.assertTrue(_stmt.to_string().endswith(
                '<http://purl.org/dc/dcmitype/StillImage>',
            ))

        def test_terms_or_specs(self):
            self.assertEqual(
                statement(BLARG.a, 'rdfs:label', Literal('a', language='en')),
                statement(Resource(BLARG.a), Resource(RDFS.label), {
                    'value': 'a', 'type': 'literal', 'lang': 'en',
                }),
            )

        def test_both_lang_and_datatype_keeps_lang(self):
            with self.assertLogs(logger, 'WARNING'):
                _stmt = statement(BLARG.a, 'rdfs:label', {
                    'value': 'a',
                    'type': 'literal',
                    'lang': 'en',
                    'datatype': 'xsd:string',
                })
            self.assertEqual(_stmt.object, Literal('a', language='en'))

        def test_bad_spec(self):
            with self.assertRaises(ValueError):
                statement(BLARG.a, 'rdfs:label', {'value': 'a', 'type': 'blob'})

        def test_keys(self):
            _en = statement(BLARG.a, 'rdfs:label', Literal('a', language='en'))
            _en_again = statement(BLARG.a, RDFS.label, Literal('a', language='en'))
            _fr = statement(BLARG.a, 'rdfs:label', Literal('a', language='fr'))
            _plain = statement(BLARG.a, 'rdfs:label', Literal('a'))
            _typed = statement(BLARG.a, 'rdfs:label', Literal('a', datatype=XSD.string))
            _iri = statement(BLARG.a, 'rdfs:label', Resource('a'))
            self.assertEqual(_en.key, _en_again.key)
            self.assertEqual(
                len({_en.key, _fr.key, _plain.key, _typed.key, _iri.key}),
                5,
            )

        def test_escaping(self):
            _quotey = statement(BLARG.a, 'rdfs:label', Literal('say "hi"@en'))
            _tagged = statement(BLARG.a, 'rdfs:label', Literal('say ', language='"hi"@en'))
            self.assertIn(r'"say \"hi\"@en"', _quotey.to_string())
            self.assertNotEqual(_quotey.key, _tagged.key)
