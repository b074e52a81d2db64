'''a LodContext is an index of everything fetched (or loaded) so far

context (noun)
    - the surroundings, circumstances, environment, background or settings
      that determine, specify, or clarify the meaning of an event or other
      occurrence.

    (gathered from https://en.wiktionary.org/wiki/context )

each subject uri gets one Instance; statements from any number of documents
merge into the instance for their subject, without duplicates
'''
import logging
import threading
import typing

from .exceptions import ParseError
from .http_client import ErrorCode, HttpClient, LodResponse
from .instance import Instance
from .parser import parse
from .primitive_rdf import OWL, prefix_map
from .settings import FetchSettings
from .statement import Statement


logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = ('en-gb', 'en')


class LodContext:
    languages: list         # language preferences, most preferred first;
    prefixes: typing.MutableMapping[str, str]  # for shorthand iris.
    _index: dict            # subject uri => Instance
    _lock: threading.Lock   # held while merging into the index
    _http_client: typing.Optional[HttpClient]
    _owns_http_client: bool  # built here (so closed here)
    _settings: typing.Optional[FetchSettings]

    # # # # # # # # # # # #
    # BEGIN public methods

    def __init__(
        self,
        http_client: typing.Optional[HttpClient] = None, *,
        settings: typing.Optional[FetchSettings] = None,
    ):
        self.languages = list(DEFAULT_LANGUAGES)
        self.prefixes = prefix_map()
        self._index = {}
        self._lock = threading.Lock()
        self._http_client = http_client
        self._owns_http_client = False
        self._settings = settings
        # about the last request/response processed:
        self._subject = None
        self._document = None
        self._status = 0
        self._error = ErrorCode.NONE
        self._err_msg = None

    @property
    def http_client(self) -> HttpClient:
        if self._http_client is None:
            self._http_client = HttpClient(self._settings)
            self._owns_http_client = True
        return self._http_client

    @property
    def subject(self) -> typing.Optional[str]:
        # the uri last requested
        return self._subject

    @property
    def document(self) -> typing.Optional[str]:
        # the uri of the document last received (may differ from `subject`)
        return self._document

    @property
    def status(self) -> int:
        return self._status

    @property
    def error(self) -> ErrorCode:
        return self._error

    @property
    def err_msg(self) -> typing.Optional[str]:
        return self._err_msg

    def set_prefix(self, prefix: str, uri: str):
        '''use `prefix:name` as shorthand for `{uri}name` in this context
        (shadows the common prefix of the same name, if any)
        '''
        self.prefixes[prefix] = uri

    def locate(self, uri: str) -> typing.Optional[Instance]:
        '''the instance for `uri`, if already known (never fetches)'''
        return self._index.get(uri)

    def fetch(self, uri: str) -> typing.Optional[Instance]:
        '''get `uri` over http (even if already known) and merge what's there

        returns the instance for `uri`, or None if the fetch failed
        (see `error` and `err_msg` for why)
        '''
        if self._process(self.http_client.get(uri)):
            return self.locate(uri)
        return None

    def resolve(self, uri: str) -> typing.Optional[Instance]:
        '''the instance for `uri`, fetching only if not already known'''
        _instance = self.locate(uri)
        if _instance is None:
            _instance = self.fetch(uri)
        return _instance

    def fetch_all(self, uris: typing.Iterable) -> bool:
        '''fetch every uri (concurrently) and merge each response, in order

        True only if every fetch succeeded; successes get merged regardless
        '''
        _all_ok = True
        for _response in self.http_client.get_all(uris):
            if not self._process(_response):
                _all_ok = False
        return _all_ok

    def load_rdf(self, rdf_text: str, mime_type: str) -> bool:
        '''parse rdf text (turtle or rdf/xml) and merge the statements

        returns False (without raising) if it could not be parsed
        '''
        try:
            _statements = parse(rdf_text, mime_type)
        except ParseError as err:
            logger.warning('load_rdf: %s', err)
            return False
        self.load_statements(_statements)
        return True

    def load_statements(self, statements: typing.Iterable[Statement]) -> int:
        '''merge statements into the instances for their subjects

        returns how many were new
        '''
        _added_count = 0
        with self._lock:
            for _statement in statements:
                _uri = _statement.subject.value
                _instance = self._index.get(_uri)
                if _instance is None:
                    _instance = self._index[_uri] = Instance(self, _uri)
                if _instance.add(_statement):
                    _added_count += 1
        logger.debug('merged %d new statements', _added_count)
        return _added_count

    def get_same_as(self, uri: str) -> set:
        '''uris of every known subject that is `owl:sameAs` the given `uri`
        '''
        return {
            _statement.subject.value
            for _instance in list(self._index.values())
            for _statement in _instance
            if (
                _statement.predicate.value == OWL.sameAs
                and _statement.object.is_resource()
                and _statement.object.value == uri
            )
        }

    def to_turtle(self) -> str:
        return self.render('text/turtle')

    def render(self, mediatype: str = 'text/turtle') -> str:
        '''every known statement, serialized as `mediatype`
        ('text/turtle' or 'application/n-triples')
        '''
        from .render import get_renderer
        return get_renderer(mediatype)(self._all_statements(), self.prefixes)

    def close(self):
        '''close the http client, if this context built it
        (a client passed in belongs to the caller)
        '''
        if self._owns_http_client and (self._http_client is not None):
            self._http_client.close()
            self._http_client = None
            self._owns_http_client = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __getitem__(self, uri: str) -> typing.Optional[Instance]:
        return self.resolve(uri)

    def __contains__(self, uri: str) -> bool:
        return uri in self._index

    def __iter__(self) -> typing.Iterator[Instance]:
        return iter(list(self._index.values()))

    def __len__(self):
        return len(self._index)

    # END public methods
    # # # # # # # # # # #

    def _process(self, response: LodResponse) -> bool:
        self._status = response.status
        self._error = response.error
        self._err_msg = response.err_msg
        if response.error:
            return False
        self._subject = response.target
        self._document = response.content_location
        try:
            _statements = parse(response.payload, response.type)
        except ParseError as err:
            logger.warning('could not parse rdf from %s: %s', response.content_location, err)
            self._error = ErrorCode.PARSE
            self._err_msg = str(err)
            return False
        self.load_statements(_statements)
        return True

    def _all_statements(self) -> typing.Iterator[Statement]:
        for _instance in list(self._index.values()):
            yield from _instance


if __debug__:
    import unittest

    import httpx

    from .primitive_rdf import IriNamespace
    from .statement import Literal, Resource, statement

    BLARG = IriNamespace('http://blarg.example/')

    CONTEXT_TURTLE = '''
        @prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
        @prefix owl: <http://www.w3.org/2002/07/owl#> .

        <http://blarg.example/a>
            rdfs:label "A"@en ;
            owl:sameAs <http://blarg.example/c> .
        <http://blarg.example/b>
            owl:sameAs <http://blarg.example/c> .
    '''

    def _mock_context(responses_by_path: dict):
        '''a LodContext that "fetches" from a dict; each value is a
        (status, headers, body) tuple -- missing paths get 404
        '''
        _requests = []

        def _handler(request: httpx.Request):
            _requests.append(str(request.url))
            try:
                _status, _headers, _body = responses_by_path[request.url.path]
            except KeyError:
                return httpx.Response(404, headers={'content-type': 'text/plain'}, content=b'')
            return httpx.Response(_status, headers=_headers, content=_body)
        _client = HttpClient(
            FetchSettings(_env_file=None),
            transport=httpx.MockTransport(_handler),
        )
        return LodContext(_client), _requests

    def _turtle(body: str):
        return (200, {'content-type': 'text/turtle'}, body.encode())

    class TestLodContext(unittest.TestCase):
        def test_load_rdf(self):
            _context = LodContext()
            self.assertTrue(_context.load_rdf(CONTEXT_TURTLE, 'text/turtle'))
            self.assertEqual(len(_context), 2)
            self.assertIn(BLARG.a, _context)
            self.assertNotIn(BLARG.c, _context)
            self.assertEqual(len(_context.locate(BLARG.a)), 2)
            self.assertEqual(str(_context.locate(BLARG.a)['rdfs:label']), 'A')
            self.assertEqual(
                {_instance.uri for _instance in _context},
                {BLARG.a, BLARG.b},
            )

        def test_load_idempotent(self):
            _context = LodContext()
            _context.load_rdf(CONTEXT_TURTLE, 'text/turtle')
            _model = _context.locate(BLARG.a).model
            self.assertTrue(_context.load_rdf(CONTEXT_TURTLE, 'text/turtle'))
            self.assertEqual(_context.locate(BLARG.a).model, _model)
            self.assertEqual(_context.load_statements(_model), 0)

        def test_load_idempotent_with_blank_nodes(self):
            _turtle = '''
                @prefix blarg: <http://blarg.example/> .
                blarg:a blarg:b [ blarg:c "d" ] ;
                    blarg:e _:x .
                _:x blarg:f "g" .
            '''
            _context = LodContext()
            self.assertTrue(_context.load_rdf(_turtle, 'text/turtle'))
            self.assertTrue(_context.load_rdf(_turtle, 'text/turtle'))
            self.assertEqual(len(_context), 3)
            self.assertEqual(sum(len(_instance) for _instance in _context), 4)
            self.assertEqual(len(_context.locate(BLARG.a)), 2)

        def test_close(self):
            with LodContext(settings=FetchSettings(_env_file=None)) as _context:
                _own_client = _context.http_client
            self.assertTrue(_own_client._client.is_closed)
            # a client passed in is left open
            _context, _ = _mock_context({})
            _passed_client = _context.http_client
            with _context:
                pass
            self.assertFalse(_passed_client._client.is_closed)
            _passed_client.close()

        def test_load_bad_rdf(self):
            _context = LodContext()
            self.assertFalse(_context.load_rdf('<not> <turtle', 'text/turtle'))
            self.assertFalse(_context.load_rdf(CONTEXT_TURTLE, 'text/html'))
            self.assertEqual(len(_context), 0)

        def test_same_as(self):
            _context = LodContext()
            _context.load_rdf(CONTEXT_TURTLE, 'text/turtle')
            _context.load_statements([
                # same again (no duplicate), and a literal (not a match)
                statement(BLARG.a, 'owl:sameAs', Resource(BLARG.c)),
                statement(BLARG.d, 'owl:sameAs', Literal(BLARG.c)),
            ])
            self.assertEqual(_context.get_same_as(BLARG.c), {BLARG.a, BLARG.b})
            self.assertEqual(_context.get_same_as(BLARG.a), set())

        def test_set_prefix(self):
            _context = LodContext()
            _context.set_prefix('blarg', BLARG[''])
            _context.set_prefix('rdfs', 'http://not-rdfs.example/')
            _context.load_statements([
                statement(
                    BLARG.a, 'blarg:likes', Literal('turtles'),
                    prefixes=_context.prefixes,
                ),
            ])
            self.assertIn(BLARG.likes, _context.locate(BLARG.a))
            self.assertEqual(str(_context.locate(BLARG.a)['blarg:likes']), 'turtles')
            self.assertEqual(_context.prefixes['rdfs'], 'http://not-rdfs.example/')
            # other contexts unaffected
            self.assertEqual(
                LodContext().prefixes['rdfs'],
                'http://www.w3.org/2000/01/rdf-schema#',
            )
            self.assertNotIn('blarg', LodContext().prefixes)

        def test_fetch(self):
            _context, _requests = _mock_context({'/a': _turtle(CONTEXT_TURTLE)})
            _instance = _context.fetch(BLARG.a)
            self.assertIsInstance(_instance, Instance)
            self.assertEqual(_instance.uri, BLARG.a)
            self.assertEqual(_context.status, 200)
            self.assertEqual(_context.error, ErrorCode.NONE)
            self.assertIsNone(_context.err_msg)
            self.assertEqual(_context.subject, BLARG.a)
            self.assertEqual(_context.document, BLARG.a)
            # everything in the document got merged
            self.assertIn(BLARG.b, _context)

        def test_fetch_error(self):
            _context, _requests = _mock_context({})
            self.assertIsNone(_context.fetch(BLARG.a))
            self.assertEqual(_context.status, 404)
            self.assertEqual(_context.error, ErrorCode.CLIENT_ERROR)
            self.assertEqual(_context.err_msg, 'Not Found')
            self.assertEqual(len(_context), 0)

        def test_fetch_html(self):
            _context, _requests = _mock_context({
                '/a': (200, {'content-type': 'text/html'}, (
                    b'<html><head><link rel="alternate" type="text/turtle"'
                    b' href="/a.ttl"></head></html>'
                )),
                '/a.ttl': _turtle(CONTEXT_TURTLE),
            })
            _instance = _context.fetch(BLARG.a)
            self.assertEqual(_instance.uri, BLARG.a)
            self.assertEqual(_context.subject, BLARG.a)
            self.assertEqual(_context.document, 'http://blarg.example/a.ttl')
            self.assertEqual(_requests, [BLARG.a, 'http://blarg.example/a.ttl'])

        def test_fetch_parse_error(self):
            _context, _requests = _mock_context({
                '/a': (200, {'content-type': 'text/turtle'}, b'<not> <turtle'),
                '/b': (200, {'content-type': 'application/json'}, b'{}'),
            })
            self.assertIsNone(_context.fetch(BLARG.a))
            self.assertEqual(_context.error, ErrorCode.PARSE)
            self.assertEqual(_context.status, 200)
            self.assertTrue(_context.err_msg)
            self.assertIsNone(_context.fetch(BLARG.b))
            self.assertEqual(_context.error, ErrorCode.PARSE)

        def test_resolve_uses_cache(self):
            _context, _requests = _mock_context({'/a': _turtle(CONTEXT_TURTLE)})
            _instance = _context.resolve(BLARG.a)
            self.assertIs(_context.resolve(BLARG.a), _instance)
            self.assertIs(_context[BLARG.a], _instance)
            # b came along in a's document
            self.assertIsNotNone(_context[BLARG.b])
            self.assertEqual(_requests, [BLARG.a])
            # fetch always fetches
            _context.fetch(BLARG.a)
            self.assertEqual(_requests, [BLARG.a, BLARG.a])

        def test_resolve_missing(self):
            _context, _requests = _mock_context({})
            self.assertIsNone(_context[BLARG.a])
            self.assertNotIn(BLARG.a, _context)

        def test_fetch_all(self):
            _context, _requests = _mock_context({
                '/a': _turtle('<http://blarg.example/a> <http://blarg.example/p> "a" .'),
                '/c': _turtle('<http://blarg.example/c> <http://blarg.example/p> "c" .'),
            })
            self.assertTrue(_context.fetch_all([BLARG.a, BLARG.c]))
            self.assertEqual(len(_context), 2)
            self.assertEqual(sorted(_requests), [BLARG.a, BLARG.c])

        def test_fetch_all_partial_failure(self):
            _context, _requests = _mock_context({
                '/a': _turtle('<http://blarg.example/a> <http://blarg.example/p> "a" .'),
                '/c': _turtle('<http://blarg.example/c> <http://blarg.example/p> "c" .'),
            })
            self.assertFalse(_context.fetch_all([BLARG.a, BLARG.b, BLARG.c]))
            # the good ones got merged anyway
            self.assertIn(BLARG.a, _context)
            self.assertIn(BLARG.c, _context)
            self.assertNotIn(BLARG.b, _context)
            # last processed was c
            self.assertEqual(_context.subject, BLARG.c)
            self.assertEqual(_context.error, ErrorCode.NONE)

        def test_read_only(self):
            _context = LodContext()
            for _attrname in ('subject', 'document', 'status', 'error', 'err_msg'):
                with self.assertRaises(AttributeError):
                    setattr(_context, _attrname, 'foo')

        def test_languages(self):
            _context = LodContext()
            self.assertEqual(_context.languages, ['en-gb', 'en'])
            _context.languages = ['fr-fr']
            self.assertEqual(_context.languages, ['fr-fr'])
            self.assertEqual(LodContext().languages, ['en-gb', 'en'])

        def test_render(self):
            _context = LodContext()
            _context.load_rdf(CONTEXT_TURTLE, 'text/turtle')
            _turtle = _context.to_turtle()
            self.assertTrue(_turtle.startswith('@prefix'))
            self.assertEqual(len(parse(_turtle, 'text/turtle')), 3)
            _ntriples = _context.render('application/n-triples')
            self.assertEqual(len(_ntriples.splitlines()), 3)
            with self.assertRaises(ValueError):
                _context.render('text/html')
            self.assertIn(
                '<http://blarg.example/a> ',
                _context.locate(BLARG.a).to_turtle(),
            )
