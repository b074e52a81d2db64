from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FetchSettings(BaseSettings):
    """HTTP fetch configuration (override with `LOD_*` environment variables)"""
    user_agent: str = Field(default='lod/python', description='User-Agent header')
    accept: str = Field(
        default='text/turtle;q=0.95, application/rdf+xml;q=0.5, text/html;q=0.1',
        description='Accept header (preference for turtle, then rdf/xml, then html)',
    )
    max_redirects: int = Field(
        default=10,
        ge=0,
        description='Max http redirects, and max html-link indirections',
    )
    concurrency: int = Field(default=10, ge=1, description='Max requests in flight')
    timeout: float = Field(default=30.0, gt=0, description='Per-request timeout (seconds)')

    model_config = SettingsConfigDict(
        env_prefix='LOD_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )


if __debug__:
    import os
    import unittest
    from unittest import mock

    class TestFetchSettings(unittest.TestCase):
        def test_defaults(self):
            with mock.patch.dict(os.environ, {}, clear=True):
                _settings = FetchSettings(_env_file=None)
            self.assertEqual(_settings.max_redirects, 10)
            self.assertEqual(_settings.concurrency, 10)
            self.assertEqual(_settings.timeout, 30.0)
            self.assertTrue(_settings.accept.startswith('text/turtle;q=0.95'))

        def test_environment(self):
            with mock.patch.dict(os.environ, {
                'LOD_USER_AGENT': 'blarg/1.0',
                'LOD_MAX_REDIRECTS': '3',
            }):
                _settings = FetchSettings(_env_file=None)
            self.assertEqual(_settings.user_agent, 'blarg/1.0')
            self.assertEqual(_settings.max_redirects, 3)

        def test_validation(self):
            with self.assertRaises(ValueError):
                FetchSettings(_env_file=None, concurrency=0)
