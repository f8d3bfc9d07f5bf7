from .lockfile_repository import LockfileRepository
from .specification_repository import SpecificationRepository

__all__ = [
    'LockfileRepository',
    'SpecificationRepository'
]
