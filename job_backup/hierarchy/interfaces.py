from abc import ABC, abstractmethod
from typing import Optional

from job_backup.models import ItemDescriptor


class IItemHierarchy(ABC):
    """Live item tree of a host instance.

    A ``parent`` of ``None`` stands for the hierarchy root.
    """

    @abstractmethod
    def list_all(self) -> list[ItemDescriptor]:
        raise NotImplementedError

    @abstractmethod
    def get_by_full_name(self, full_name: str) -> Optional[ItemDescriptor]:
        raise NotImplementedError

    @abstractmethod
    def read_config_bytes(self, item: ItemDescriptor) -> Optional[bytes]:
        raise NotImplementedError

    @abstractmethod
    def is_updatable(self, item: ItemDescriptor) -> bool:
        raise NotImplementedError

    @abstractmethod
    def replace_config_bytes(self, item: ItemDescriptor, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def can_create_in(self, parent: Optional[ItemDescriptor]) -> bool:
        raise NotImplementedError

    @abstractmethod
    def create_from_config_bytes(
        self, parent: Optional[ItemDescriptor], leaf_name: str, data: bytes
    ) -> ItemDescriptor:
        raise NotImplementedError

    @abstractmethod
    def create_container(
        self, parent: Optional[ItemDescriptor], name: str
    ) -> ItemDescriptor:
        raise NotImplementedError

    @abstractmethod
    def persist(self, item: ItemDescriptor) -> None:
        raise NotImplementedError

    def exists(self, full_name: str) -> bool:
        return self.get_by_full_name(full_name) is not None
