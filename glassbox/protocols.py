"""Protocol definitions for Glassbox.

These protocols describe the seams between the content cache and its
collaborators, so tests can substitute stubs for the markdown engine, the
content source and the loader without touching cache logic.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Post, RenderedPost


@runtime_checkable
class BodyRenderer(Protocol):
    """Protocol for turning a post body into HTML."""

    @abstractmethod
    def render(self, body: str) -> str:
        """Render a markdown body.

        Args:
            body: Markdown source, without front matter.

        Returns:
            Fully formed HTML fragment.
        """
        ...


@runtime_checkable
class PageRenderer(Protocol):
    """Protocol for rendering the complete HTML page served for a post."""

    @abstractmethod
    def __call__(self, post: Post) -> str: ...


@runtime_checkable
class ContentSource(Protocol):
    """Read-only filesystem view.

    Both ``pathlib.Path`` and ``importlib.resources`` traversables satisfy
    this protocol, so content can live on disk or inside a package.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def iterdir(self) -> Iterator[ContentSource]: ...

    @abstractmethod
    def is_file(self) -> bool: ...

    @abstractmethod
    def read_bytes(self) -> bytes: ...


@runtime_checkable
class PostLoader(Protocol):
    """Protocol for producing the full set of rendered posts."""

    @abstractmethod
    def load(self) -> Iterable[RenderedPost]:
        """Load every post available to the loader.

        Returns:
            Rendered posts in no particular order.
        """
        ...
