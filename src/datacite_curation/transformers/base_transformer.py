import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

from ..schema import Resource

logger = logging.getLogger(__name__)


class Transformer(ABC):
    """Turn one source record into a Resource."""

    def __init__(self):
        super().__init__()

    @abstractmethod
    def transform(self, single_object) -> Resource:
        raise NotImplementedError()

    def transform_many(self, objects: Iterable) -> Iterator[Resource]:
        for count, single_object in enumerate(objects, start=1):
            resource = self.transform(single_object)
            logger.debug(f"Transformed record {count}: {resource.identifier or 'no DOI'}")
            yield resource
