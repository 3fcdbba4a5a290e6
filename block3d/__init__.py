"""block3d - Wave Function Collapse for 3D block structures."""

__version__ = "0.1.0"
