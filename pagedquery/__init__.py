__version__ = __import__('importlib.metadata').metadata.version('pagedquery')

from .cursor import Cursor
from .entity import Entity, Key
from .more_results import MoreResultsStatus
from .query_object import Query, QueryObjectDict
from .engine import Dataset, ResultPage, ContinuationDriver, PagerSettings
from .engine import QueryService, QueryBatch, EntityResult

from . import query_object
from . import exc
