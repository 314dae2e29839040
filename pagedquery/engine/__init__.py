from .service import QueryService, QueryBatch, EntityResult
from .settings import PagerSettings
from .results import ResultPage
from .continuation import ContinuationDriver
from .dataset import Dataset
