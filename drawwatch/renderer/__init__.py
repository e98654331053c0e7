from .base import PageRenderer, RenderAttempt, RenderLatch
from .browser import PlaywrightPageRenderer

__all__ = [
    "PageRenderer",
    "RenderAttempt",
    "RenderLatch",
    "PlaywrightPageRenderer",
]
