"""Visual module for diagram rendering and image hosting."""

from pr_checker.visual.image_host import ImgBBUploader, UploadResult
from pr_checker.visual.mermaid import (
    MermaidRenderer,
    RenderResult,
    embed_images,
    extract_mermaid_blocks,
)

__all__ = [
    "ImgBBUploader", "UploadResult",
    "MermaidRenderer", "RenderResult", "embed_images", "extract_mermaid_blocks",
]
