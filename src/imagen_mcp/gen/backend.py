from __future__ import annotations

from abc import ABC, abstractmethod

from .types import BackendCall, BackendResponse


class ImageBackend(ABC):
    @property
    @abstractmethod
    def backend_id(self) -> str: ...

    @abstractmethod
    def generate(self, call: BackendCall) -> BackendResponse:
        """Send one generation request to the image API and return its parts.

        Transport, auth and quota failures propagate as ordinary exceptions.
        """
        raise NotImplementedError
