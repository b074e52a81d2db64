import doctest

from lod import (
    context,
    html_link,
    http_client,
    instance,
    parser,
    primitive_rdf,
    render,
    settings,
    statement,
)

MODULES_WITH_DOCTESTS = (
    html_link,
    http_client,
    parser,
    primitive_rdf,
    statement,
)

MODULES_WITH_TESTCASES = (
    primitive_rdf,
    statement,
    parser,
    html_link,
    settings,
    http_client,
    instance,
    context,
    render,
)


def load_tests(loader, tests, ignore):
    for _module in MODULES_WITH_TESTCASES:
        tests.addTests(loader.loadTestsFromModule(_module))
    for _module in MODULES_WITH_DOCTESTS:
        tests.addTests(doctest.DocTestSuite(_module))
    return tests
