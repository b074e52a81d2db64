'''fetch rdf over http: content negotiation, redirects, and html indirection

each `HttpClient.get_all` batch runs in rounds: every pending request in a
round is sent concurrently; an html page that links to an rdf alternate
queues a follow-up request (in the same result slot) for the next round.
'''
import concurrent.futures
import dataclasses
import enum
import logging
import typing
import urllib.parse

import httpx

from .html_link import extract_rdf_alternate_link
from .settings import FetchSettings


logger = logging.getLogger(__name__)


class ErrorCode(enum.IntEnum):
    NONE = 0
    TRANSPORT = 1           # connection, dns, timeout...
    SERVER_ERROR = 2        # http 5xx
    CLIENT_ERROR = 3        # http 4xx
    NO_REPRESENTATION = 4   # no content type, or html without rdf link
    TOO_MANY_REDIRECTS = 5  # too many http redirects or html indirections
    PARSE = 6               # fetched fine, but could not parse as rdf


class RequestSpec(typing.NamedTuple):
    uri: str
    original_uri: typing.Optional[str] = None  # what the caller asked for


@dataclasses.dataclass
class LodResponse:
    target: typing.Optional[str] = None            # uri originally requested
    content_location: typing.Optional[str] = None  # uri of the document got
    status: int = 0
    error: ErrorCode = ErrorCode.NONE
    err_msg: typing.Optional[str] = None
    type: typing.Optional[str] = None
    payload: typing.Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.error


def tidy_request_spec(spec_or_uri) -> RequestSpec:
    '''accept a uri, a RequestSpec, or a dict with "uri" (and "original_uri")

    >>> tidy_request_spec('http://foo.example/')
    RequestSpec(uri='http://foo.example/', original_uri='http://foo.example/')
    '''
    if isinstance(spec_or_uri, str):
        return RequestSpec(spec_or_uri, spec_or_uri)
    if isinstance(spec_or_uri, RequestSpec):
        _uri, _original_uri = spec_or_uri
    elif isinstance(spec_or_uri, typing.Mapping):
        _uri = spec_or_uri['uri']
        _original_uri = spec_or_uri.get('original_uri')
    else:
        raise ValueError(f'expected uri or request spec (got {spec_or_uri!r})')
    return RequestSpec(_uri, (_original_uri or _uri))


class HttpClient:
    settings: FetchSettings
    _client: httpx.Client

    def __init__(
        self,
        settings: typing.Optional[FetchSettings] = None, *,
        transport: typing.Optional[httpx.BaseTransport] = None,
    ):
        self.settings = settings or FetchSettings()
        self._client = httpx.Client(
            headers={
                'Accept': self.settings.accept,
                'User-Agent': self.settings.user_agent,
            },
            follow_redirects=True,
            max_redirects=self.settings.max_redirects,
            timeout=self.settings.timeout,
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def get(self, uri: str) -> LodResponse:
        return self.get_all([RequestSpec(uri, uri)])[0]

    def get_all(self, specs_or_uris: typing.Iterable) -> list[LodResponse]:
        '''fetch each uri (concurrently); one response per input, in order

        never raises for a single request's failure -- check `response.error`
        '''
        _specs = [tidy_request_spec(_spec) for _spec in specs_or_uris]
        _responses: list[typing.Optional[LodResponse]] = [None] * len(_specs)
        _pending = dict(enumerate(_specs))  # result slot => spec to fetch
        # the first round, then at most `max_redirects` rounds of follow-ups
        for _ in range(self.settings.max_redirects + 1):
            if not _pending:
                break
            _followups = {}
            for _slot, _outcome in self._get_round(_pending):
                if isinstance(_outcome, RequestSpec):
                    _followups[_slot] = _outcome
                else:
                    _responses[_slot] = _outcome
            _pending = _followups
        for _slot, _spec in _pending.items():
            _responses[_slot] = _error_response(
                _spec,
                ErrorCode.TOO_MANY_REDIRECTS,
                f'too many html indirections (max {self.settings.max_redirects})',
            )
        return _responses

    def _get_round(self, pending: dict[int, RequestSpec]):
        _max_workers = min(self.settings.concurrency, len(pending))
        with concurrent.futures.ThreadPoolExecutor(max_workers=_max_workers) as _executor:
            _futures = {
                _slot: _executor.submit(self._get_one, _spec)
                for _slot, _spec in pending.items()
            }
        # the executor waits for every future on exit
        return [
            (_slot, _future.result())
            for _slot, _future in _futures.items()
        ]

    def _get_one(self, spec: RequestSpec) -> typing.Union[LodResponse, RequestSpec]:
        logger.debug('GET %s (for %s)', spec.uri, spec.original_uri)
        try:
            _response = self._client.get(spec.uri)
        except httpx.TooManyRedirects as err:
            return _error_response(spec, ErrorCode.TOO_MANY_REDIRECTS, str(err))
        except (httpx.HTTPError, httpx.InvalidURL) as err:
            return _error_response(
                spec,
                ErrorCode.TRANSPORT,
                f'{err.__class__.__name__}: {err}',
            )
        return self._response_or_followup(spec, _response)

    def _response_or_followup(self, spec: RequestSpec, response: httpx.Response):
        _status = response.status_code
        _content_type = response.headers.get('content-type')
        if _status >= 500:
            return _error_response(
                spec, ErrorCode.SERVER_ERROR, response.reason_phrase, status=_status,
            )
        if not _content_type:
            return _error_response(
                spec, ErrorCode.NO_REPRESENTATION, 'no content type', status=_status,
            )
        if _status == 200 and 'text/html' in _content_type.lower():
            _rdf_link = extract_rdf_alternate_link(response.text, str(response.url))
            if _rdf_link:
                logger.debug('html at %s links to rdf at %s', response.url, _rdf_link)
                return RequestSpec(_rdf_link, spec.original_uri)
            return _error_response(
                spec, ErrorCode.NO_REPRESENTATION, 'HTML page but no RDF link',
                status=_status,
            )
        if _status >= 400:
            return _error_response(
                spec, ErrorCode.CLIENT_ERROR, response.reason_phrase, status=_status,
            )
        return LodResponse(
            target=spec.original_uri,
            content_location=_content_location(spec, response),
            status=_status,
            type=_content_type,
            payload=response.text,
        )


def _content_location(spec: RequestSpec, response: httpx.Response) -> str:
    _final_url = str(response.url)
    _header = response.headers.get('content-location')
    if _header:
        return urllib.parse.urljoin(_final_url, _header)
    if response.history:  # redirected
        return _final_url
    return spec.uri


def _error_response(
    spec: RequestSpec,
    error: ErrorCode,
    err_msg: str, *,
    status: int = 0,
) -> LodResponse:
    logger.warning('could not get rdf from %s (%s: %s)', spec.uri, error.name, err_msg)
    return LodResponse(
        target=spec.original_uri,
        status=status,
        error=error,
        err_msg=err_msg,
    )


if __debug__:
    import threading
    import unittest

    TURTLE = b'''
        @prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
        @prefix foaf: <http://xmlns.com/foaf/0.1/> .

        <http://foo.example/something>
            rdfs:label "An exciting thing"@en .

        <http://foo.example/something.ttl>
            rdfs:label "Data about 'An exciting thing'"@en ;
            foaf:primaryTopic <http://foo.example/something> .
    '''

    HTML = b'''<!doctype html>
        <html>
          <head>
            <link rel="alternate" type="text/turtle" href="/something.ttl">
          </head>
        </html>
    '''

    HTML_NO_LINK = b'<!doctype html><html></html>'

    HTML_WRONG_LINK_TYPE = b'''<!doctype html>
        <html>
          <link rel="alternate" type="application/json" href="/something.json">
        </html>
    '''

    def _turtle(**headers):
        return httpx.Response(
            200,
            headers={'Content-Type': 'text/turtle', **headers},
            content=TURTLE,
        )

    def _html(content=HTML):
        return httpx.Response(200, headers={'Content-Type': 'text/html'}, content=content)

    def _mock_client(responses_by_path: dict, **settings_kwargs):
        '''an HttpClient whose "server" answers from `responses_by_path`
        (values are responses or callables taking the request)
        '''
        _requested = []

        def _handler(request: httpx.Request):
            _requested.append(request)
            _answer = responses_by_path.get(request.url.path)
            if _answer is None:
                return httpx.Response(404, headers={'Content-Type': 'text/plain'})
            return _answer(request) if callable(_answer) else _answer

        _settings = FetchSettings(_env_file=None, **settings_kwargs)
        _client = HttpClient(_settings, transport=httpx.MockTransport(_handler))
        return _client, _requested

    class TestHttpClient(unittest.TestCase):
        def test_fetch_rdf(self):
            _client, _requested = _mock_client({'/something': _turtle()})
            _response = _client.get('http://foo.example/something')
            self.assertTrue(_response.ok)
            self.assertEqual(_response.error, ErrorCode.NONE)
            self.assertEqual(_response.status, 200)
            self.assertEqual(_response.payload, TURTLE.decode())
            self.assertEqual(_response.type, 'text/turtle')
            self.assertEqual(_response.target, 'http://foo.example/something')
            self.assertEqual(_response.content_location, 'http://foo.example/something')
            # request headers
            (_request,) = _requested
            self.assertEqual(
                _request.headers['Accept'],
                'text/turtle;q=0.95, application/rdf+xml;q=0.5, text/html;q=0.1',
            )
            self.assertEqual(_request.headers['User-Agent'], 'lod/python')

        def test_content_location_header(self):
            _client, _ = _mock_client({
                '/something': _turtle(**{'Content-Location': '/something.ttl'}),
            })
            _response = _client.get('http://foo.example/something')
            self.assertEqual(
                _response.content_location,
                'http://foo.example/something.ttl',
            )

        def test_fetch_bad_response(self):
            _client, _ = _mock_client({
                '/something': httpx.Response(500, headers={'Content-Type': 'text/plain'}),
            })
            _response = _client.get('http://foo.example/something')
            self.assertFalse(_response.ok)
            self.assertEqual(_response.error, ErrorCode.SERVER_ERROR)
            self.assertEqual(_response.status, 500)
            self.assertEqual(_response.err_msg, 'Internal Server Error')
            self.assertIsNone(_response.payload)

        def test_server_error_without_body(self):
            # bare 502/503 from proxies carry no content type
            _client, _ = _mock_client({'/something': httpx.Response(503)})
            _response = _client.get('http://foo.example/something')
            self.assertEqual(_response.error, ErrorCode.SERVER_ERROR)
            self.assertEqual(_response.status, 503)
            self.assertEqual(_response.err_msg, 'Service Unavailable')

        def test_not_found(self):
            _client, _ = _mock_client({})
            _response = _client.get('http://foo.example/flukeydookeydoo')
            self.assertEqual(_response.error, ErrorCode.CLIENT_ERROR)
            self.assertEqual(_response.status, 404)

        def test_no_content_type(self):
            _client, _ = _mock_client({
                '/something': httpx.Response(200, content=TURTLE),
            })
            _response = _client.get('http://foo.example/something')
            self.assertEqual(_response.error, ErrorCode.NO_REPRESENTATION)
            self.assertEqual(_response.err_msg, 'no content type')

        def test_fetch_html(self):
            _client, _requested = _mock_client({
                '/something': _html(),
                '/something.ttl': _turtle(),
            })
            _response = _client.get('http://foo.example/something')
            self.assertTrue(_response.ok)
            self.assertEqual(_response.status, 200)
            self.assertEqual(_response.payload, TURTLE.decode())
            self.assertEqual(_response.type, 'text/turtle')
            self.assertEqual(_response.target, 'http://foo.example/something')
            self.assertEqual(
                _response.content_location,
                'http://foo.example/something.ttl',
            )
            self.assertEqual(
                [str(_request.url) for _request in _requested],
                ['http://foo.example/something', 'http://foo.example/something.ttl'],
            )

        def test_fetch_html_no_link(self):
            for _content in (HTML_NO_LINK, HTML_WRONG_LINK_TYPE):
                _client, _ = _mock_client({'/something': _html(_content)})
                _response = _client.get('http://foo.example/something')
                self.assertEqual(_response.error, ErrorCode.NO_REPRESENTATION)
                self.assertEqual(_response.err_msg, 'HTML page but no RDF link')
                self.assertEqual(_response.target, 'http://foo.example/something')

        def test_redirect_followed(self):
            _client, _ = _mock_client({
                '/resource/Oxford': httpx.Response(303, headers={'Location': '/data/Oxford'}),
                '/data/Oxford': httpx.Response(
                    302,
                    headers={'Location': 'http://foo.example/data/Oxford.ttl'},
                ),
                '/data/Oxford.ttl': _turtle(),
            })
            _response = _client.get('http://foo.example/resource/Oxford')
            self.assertTrue(_response.ok)
            self.assertEqual(_response.target, 'http://foo.example/resource/Oxford')
            self.assertEqual(
                _response.content_location,
                'http://foo.example/data/Oxford.ttl',
            )

        def test_too_many_redirects(self):
            _client, _requested = _mock_client({
                '/loop': httpx.Response(302, headers={'Location': '/loop'}),
            }, max_redirects=3)
            _response = _client.get('http://foo.example/loop')
            self.assertEqual(_response.error, ErrorCode.TOO_MANY_REDIRECTS)
            self.assertEqual(len(_requested), 4)

        def test_too_many_indirections(self):
            _loopy_html = (
                b'<link rel="alternate" type="text/turtle" href="/loopy">'
            )
            _client, _requested = _mock_client({
                '/loopy': _html(_loopy_html),
            }, max_redirects=2)
            _response = _client.get('http://foo.example/loopy')
            self.assertEqual(_response.error, ErrorCode.TOO_MANY_REDIRECTS)
            self.assertEqual(_response.target, 'http://foo.example/loopy')
            self.assertEqual(len(_requested), 3)

        def test_transport_error(self):
            def _refuse(request):
                raise httpx.ConnectError('connection refused', request=request)
            _client, _ = _mock_client({'/something': _refuse})
            _response = _client.get('http://foo.example/something')
            self.assertEqual(_response.error, ErrorCode.TRANSPORT)
            self.assertIn('connection refused', _response.err_msg)
            self.assertEqual(_response.status, 0)
            self.assertEqual(_response.target, 'http://foo.example/something')

        def test_get_all(self):
            # three gets: an html page with rdf link, an html page without,
            # and the rdf linked from the first page
            _client, _requested = _mock_client({
                '/something.html': _html(),
                '/something': _html(HTML_NO_LINK),
                '/something.ttl': _turtle(**{'Content-Location': '/something.ttl'}),
            })
            _responses = _client.get_all([
                'http://foo.example/something.html',
                {'uri': 'http://foo.example/something'},
            ])
            self.assertEqual(len(_responses), 2)
            self.assertEqual(len(_requested), 3)
            (_good, _bad) = _responses
            self.assertTrue(_good.ok)
            self.assertEqual(_good.payload, TURTLE.decode())
            self.assertEqual(_good.target, 'http://foo.example/something.html')
            self.assertEqual(_bad.error, ErrorCode.NO_REPRESENTATION)
            self.assertEqual(_bad.target, 'http://foo.example/something')

        def test_get_all_order(self):
            _b_answered = threading.Event()

            def _slow_a(request):
                _b_answered.wait(timeout=5)  # make sure "b" finishes first
                return _turtle()

            def _fast_b(request):
                _b_answered.set()
                return _html()

            _client, _ = _mock_client({
                '/a': _slow_a,
                '/b': _fast_b,
                '/c': httpx.Response(503, headers={'Content-Type': 'text/plain'}),
                '/something.ttl': _turtle(),
            })
            _responses = _client.get_all([
                'http://foo.example/a',
                'http://foo.example/b',
                RequestSpec('http://foo.example/c'),
            ])
            self.assertEqual(
                [_response.target for _response in _responses],
                ['http://foo.example/a', 'http://foo.example/b', 'http://foo.example/c'],
            )
            self.assertEqual(
                [_response.content_location for _response in _responses],
                ['http://foo.example/a', 'http://foo.example/something.ttl', None],
            )
            self.assertEqual(
                [_response.error for _response in _responses],
                [ErrorCode.NONE, ErrorCode.NONE, ErrorCode.SERVER_ERROR],
            )

        def test_get_all_empty(self):
            _client, _requested = _mock_client({})
            self.assertEqual(_client.get_all([]), [])
            self.assertEqual(_requested, [])

        def test_request_specs(self):
            self.assertEqual(
                tidy_request_spec({'uri': 'http://a.example/', 'original_uri': None}),
                RequestSpec('http://a.example/', 'http://a.example/'),
            )
            self.assertEqual(
                tidy_request_spec(RequestSpec('http://a.example/', 'http://b.example/')),
                RequestSpec('http://a.example/', 'http://b.example/'),
            )
            with self.assertRaises(ValueError):
                tidy_request_spec(7)
