'''lod: resolve linked open data uris into queryable, de-duplicated rdf
'''
__all__ = (
    'ErrorCode',
    'FetchSettings',
    'FilterQueryError',
    'FilteredInstance',
    'HttpClient',
    'Instance',
    'IriNamespace',
    'Literal',
    'LodContext',
    'LodError',
    'LodResponse',
    'ParseError',
    'RequestSpec',
    'Resource',
    'Statement',
    'expand_prefix',
)
from .exceptions import (
    FilterQueryError,
    LodError,
    ParseError,
)
from .primitive_rdf import (
    IriNamespace,
    expand_prefix,
)
from .statement import (
    Literal,
    Resource,
    Statement,
)
from .settings import FetchSettings
from .http_client import (
    ErrorCode,
    HttpClient,
    LodResponse,
    RequestSpec,
)
from .instance import (
    FilteredInstance,
    Instance,
)
from .context import LodContext
