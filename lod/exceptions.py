class LodError(Exception):
    pass


class ParseError(LodError):
    '''raised by `lod.parser.parse` for malformed rdf or an unknown mediatype
    '''
    pass


class FilterQueryError(LodError, ValueError):
    pass
