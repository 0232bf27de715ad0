from dom_lens.dom.serializer.serializer import DOMTreeSerializer

__all__ = ['DOMTreeSerializer']
