from .base import ElementHandle, Renderer, RendererFactory, renderer_factory_from_config

__all__ = ["ElementHandle", "Renderer", "RendererFactory", "renderer_factory_from_config"]
