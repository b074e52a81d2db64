'''primitive_rdf: iri namespaces and prefix expansion, as python primitives
'''
import collections
import logging
import types
from typing import Mapping, Optional

if __debug__:  # examples/tests thru-out, wrapped in `__debug__`
    # run tests with the command `python3 -m unittest lod/primitive_rdf.py`
    # (or discard tests with `-O` or `-OO` command-line options)
    import unittest


logger = logging.getLogger(__name__)


###
# for using iris without having to type out full iris
class IriNamespace:
    '''build iris in one namespace with attribute or item syntax

    >>> FOO = IriNamespace('http://foo.example/')
    >>> FOO.blah
    'http://foo.example/blah'
    >>> FOO['blah-blah']
    'http://foo.example/blah-blah'
    >>> 'http://foo.example/blah' in FOO
    True
    '''
    __slots__ = ('_iri',)

    def __init__(self, iri: str):
        if ':' not in iri:
            raise ValueError(f'expected iri to have a ":" (got "{iri}")')
        self._iri = iri

    def __getattr__(self, name: str) -> str:
        # private and dunder lookups (copy, pickle) never become iris
        if name.startswith('_'):
            raise AttributeError(name)
        return self._iri + name

    def __getitem__(self, name: str) -> str:
        return self._iri + name

    def __contains__(self, iri_or_namespace) -> bool:
        return str(iri_or_namespace).startswith(self._iri)

    def __str__(self):
        return self._iri

    def __repr__(self):
        return f'{self.__class__.__qualname__}("{self._iri}")'

    def __eq__(self, other):
        return isinstance(other, IriNamespace) and (self._iri == other._iri)

    def __hash__(self):
        return hash(self._iri)


###
# commonly-used vocabularies, by conventional prefix
# (shared by every context; contexts shadow it, never mutate it)
COMMON_PREFIXES: Mapping[str, str] = types.MappingProxyType({
    'bibo': 'http://purl.org/ontology/bibo/',
    'cc': 'http://creativecommons.org/ns#',
    'crm': 'http://www.cidoc-crm.org/cidoc-crm/',
    'dcmitype': 'http://purl.org/dc/dcmitype/',
    'dc': 'http://purl.org/dc/terms/',
    'dct': 'http://purl.org/dc/terms/',
    'dcterms': 'http://purl.org/dc/terms/',
    'exif': 'http://www.w3.org/2003/12/exif/ns#',
    'foaf': 'http://xmlns.com/foaf/0.1/',
    'formats': 'http://www.w3.org/ns/formats/',
    'frbr': 'http://purl.org/vocab/frbr/core#',
    'geo': 'http://www.w3.org/2003/01/geo/wgs84_pos#',
    'lio': 'http://purl.org/net/lio#',
    'mrss': 'http://search.yahoo.com/mrss/',
    'oa': 'http://www.w3.org/ns/oa#',
    'odrl': 'http://www.w3.org/ns/odrl/2/',
    'olo': 'http://purl.org/ontology/olo/core#',
    'owl': 'http://www.w3.org/2002/07/owl#',
    'po': 'http://purl.org/ontology/po/',
    'rdf': 'http://www.w3.org/1999/02/22-rdf-syntax-ns#',
    'rdfs': 'http://www.w3.org/2000/01/rdf-schema#',
    'schema': 'http://schema.org/',
    'sioc': 'http://rdfs.org/sioc/services#',
    'skos': 'http://www.w3.org/2004/02/skos/core#',
    'vcard': 'http://www.w3.org/vcard-rdf/3.0#',
    'void': 'http://rdfs.org/ns/void#',
    'wdrs': 'http://www.w3.org/2007/05/powder-s#',
    'xhtml': 'http://www.w3.org/1999/xhtml/vocab#',
    'xsd': 'http://www.w3.org/2001/XMLSchema#',
})

# some standard namespaces used herein
RDF = IriNamespace(COMMON_PREFIXES['rdf'])
RDFS = IriNamespace(COMMON_PREFIXES['rdfs'])
OWL = IriNamespace(COMMON_PREFIXES['owl'])
XSD = IriNamespace(COMMON_PREFIXES['xsd'])
DCTERMS = IriNamespace(COMMON_PREFIXES['dcterms'])
DCMITYPE = IriNamespace(COMMON_PREFIXES['dcmitype'])
FOAF = IriNamespace(COMMON_PREFIXES['foaf'])
SCHEMA = IriNamespace(COMMON_PREFIXES['schema'])


def expand_prefix(term: str, prefixes: Mapping[str, str] = COMMON_PREFIXES) -> str:
    '''expand a `prefix:name` shorthand into a full iri

    absolute iris and unknown prefixes come back unchanged (no error)
    >>> expand_prefix('rdfs:label')
    'http://www.w3.org/2000/01/rdf-schema#label'
    >>> expand_prefix('http://already.example/absolute')
    'http://already.example/absolute'
    >>> expand_prefix('unknownprefix:term')
    'unknownprefix:term'
    '''
    if term.startswith('http'):
        return term
    _prefix, _colon, _name = term.partition(':')
    if _colon and (_prefix in prefixes):
        return prefixes[_prefix] + _name
    return term


def prefix_map(overrides: Optional[dict] = None) -> collections.ChainMap:
    '''a prefix mapping where `overrides` shadow the common prefixes

    writes go to `overrides` only (`COMMON_PREFIXES` is read-only anyhow)
    '''
    return collections.ChainMap(
        (overrides if overrides is not None else {}),
        COMMON_PREFIXES,
    )


if __debug__:
    BLARG = IriNamespace('https://blarg.example/')

    class TestIriNamespace(unittest.TestCase):
        def test_iris(self):
            self.assertEqual(BLARG.foo, 'https://blarg.example/foo')
            self.assertEqual(BLARG.blip, BLARG['blip'])
            self.assertEqual(BLARG['gloo.my'], 'https://blarg.example/gloo.my')
            self.assertEqual(str(BLARG), 'https://blarg.example/')
            self.assertEqual(BLARG, IriNamespace('https://blarg.example/'))
            self.assertEqual(OWL.sameAs, 'http://www.w3.org/2002/07/owl#sameAs')

        def test___contains__(self):
            self.assertIn('https://blarg.example/booboo', BLARG)
            self.assertNotIn('https://gralb.example/booboo', BLARG)
            self.assertNotIn('blip', BLARG)
            my_subvocab = IriNamespace(BLARG['my-subvocab/'])
            self.assertIn(my_subvocab, BLARG)
            self.assertNotIn(BLARG, my_subvocab)
            self.assertIn(RDFS.label, RDFS)

        def test_private_names(self):
            with self.assertRaises(AttributeError):
                BLARG.__wrapped__
            with self.assertRaises(AttributeError):
                BLARG._private
            with self.assertRaises(AttributeError):
                BLARG.anything = 'no'

        def test_bad_iri(self):
            with self.assertRaises(ValueError):
                IriNamespace('no-colon-here')

    class TestExpandPrefix(unittest.TestCase):
        def test_common_prefixes(self):
            for _short, _expected in (
                ('rdfs:label', 'http://www.w3.org/2000/01/rdf-schema#label'),
                ('owl:sameAs', 'http://www.w3.org/2002/07/owl#sameAs'),
                ('dcmitype:StillImage', 'http://purl.org/dc/dcmitype/StillImage'),
                ('schema:name', 'http://schema.org/name'),
                ('dct:title', DCTERMS.title),
            ):
                self.assertEqual(expand_prefix(_short), _expected)

        def test_unchanged(self):
            for _term in (
                'http://already/absolute',
                'https://blarg.example/foo',
                'unknownprefix:term',
                'nocolon',
                '',
            ):
                self.assertEqual(expand_prefix(_term), _term)

        def test_split_on_first_colon(self):
            self.assertEqual(
                expand_prefix('rdfs:a:b'),
                'http://www.w3.org/2000/01/rdf-schema#a:b',
            )

        def test_prefix_map_shadows(self):
            _overrides = {'rdfs': BLARG['rdfs#'], 'blarg': str(BLARG)}
            _prefixes = prefix_map(_overrides)
            self.assertEqual(
                expand_prefix('rdfs:label', _prefixes),
                'https://blarg.example/rdfs#label',
            )
            self.assertEqual(
                expand_prefix('blarg:foo', _prefixes),
                BLARG.foo,
            )
            self.assertEqual(expand_prefix('owl:sameAs', _prefixes), OWL.sameAs)
            # the shared table is untouched
            self.assertEqual(
                expand_prefix('rdfs:label'),
                'http://www.w3.org/2000/01/rdf-schema#label',
            )
            _prefixes['foaf'] = BLARG['foaf/']
            self.assertEqual(_overrides['foaf'], BLARG['foaf/'])
            self.assertEqual(COMMON_PREFIXES['foaf'], 'http://xmlns.com/foaf/0.1/')
            with self.assertRaises(TypeError):
                COMMON_PREFIXES['foaf'] = BLARG['nope/']
