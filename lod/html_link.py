'''find a machine-readable rdf alternate linked from an html page
'''
import html.parser
import logging
import typing
import urllib.parse

from .parser import is_rdf_mediatype


logger = logging.getLogger(__name__)


def extract_rdf_alternate_link(html_text: str, base_uri: str) -> typing.Optional[str]:
    '''the href of the first `<link rel="alternate">` with an rdf mediatype,
    made absolute relative to `base_uri` (or None, if there's no such link)

    >>> extract_rdf_alternate_link(
    ...     '<html><head><link rel="alternate" type="text/turtle"'
    ...     ' href="/x.ttl"></head></html>',
    ...     'http://blarg.example/x',
    ... )
    'http://blarg.example/x.ttl'
    '''
    _finder = _AlternateLinkFinder()
    _finder.feed(html_text or '')
    _finder.close()
    if not _finder.href:
        return None
    return urllib.parse.urljoin(base_uri, _finder.href)


class _AlternateLinkFinder(html.parser.HTMLParser):
    href: typing.Optional[str]

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.href = None

    def handle_starttag(self, tag, attrs):
        if self.href is not None or tag != 'link':
            return
        _attrs = dict(attrs)
        _rel_tokens = (_attrs.get('rel') or '').lower().split()
        if (
            'alternate' in _rel_tokens
            and is_rdf_mediatype(_attrs.get('type'))
            and _attrs.get('href')
        ):
            self.href = _attrs['href'].strip()


if __debug__:
    import unittest

    HTML_WITH_LINK = '''<!doctype html>
        <html>
          <head>
            <link rel="stylesheet" type="text/css" href="/style.css">
            <link rel="alternate" type="application/json" href="/something.json">
            <link rel="alternate" type="text/turtle" href="/something.rdf">
            <link rel="alternate" type="application/rdf+xml" href="/something.xml">
          </head>
        </html>
    '''

    class TestExtractRdfAlternateLink(unittest.TestCase):
        def test_relative(self):
            self.assertEqual(
                extract_rdf_alternate_link(HTML_WITH_LINK, 'http://foo.example/something'),
                'http://foo.example/something.rdf',
            )
            self.assertEqual(
                extract_rdf_alternate_link(
                    '<link rel="alternate" type="text/turtle" href="sibling.ttl">',
                    'http://foo.example/dir/page.html',
                ),
                'http://foo.example/dir/sibling.ttl',
            )

        def test_absolute(self):
            self.assertEqual(
                extract_rdf_alternate_link(
                    '<link rel="alternate" type="application/rdf+xml"'
                    ' href="https://elsewhere.example/data.rdf"/>',
                    'http://foo.example/',
                ),
                'https://elsewhere.example/data.rdf',
            )

        def test_rel_tokens(self):
            self.assertEqual(
                extract_rdf_alternate_link(
                    '<LINK REL="Alternate nofollow" TYPE="text/turtle; charset=utf-8"'
                    ' HREF="/a.ttl">',
                    'http://foo.example/b',
                ),
                'http://foo.example/a.ttl',
            )

        def test_no_link(self):
            for _html in (
                '<!doctype html><html></html>',
                '<html><link rel="alternate" type="application/json" href="/x.json"></html>',
                '<html><link rel="stylesheet" type="text/turtle" href="/x.ttl"></html>',
                '<html><link rel="alternate" type="text/turtle"></html>',
                '',
                'not even html <',
            ):
                self.assertIsNone(
                    extract_rdf_alternate_link(_html, 'http://foo.example/'),
                )
