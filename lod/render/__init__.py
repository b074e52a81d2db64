from . import turtle, ntriples
from .turtle import render_turtle
from .ntriples import render_ntriples


RENDERER_BY_MEDIATYPE = {
    'text/turtle': render_turtle,
    'application/n-triples': render_ntriples,
}


def get_renderer(mediatype):
    try:
        return RENDERER_BY_MEDIATYPE[mediatype]
    except KeyError:
        raise ValueError(f'unknown mediatype: {mediatype}')


if __debug__:
    import unittest

    MODULES_WITH_TESTS = (turtle, ntriples,)

    # implement "load_tests protocol" for unittest
    def load_tests(loader, tests, pattern):
        suite = unittest.TestSuite()
        for module in MODULES_WITH_TESTS:
            suite.addTests(loader.loadTestsFromModule(module))
        return suite
