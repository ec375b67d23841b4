"""Ebook container writing and format transcoding."""

from .epub import EpubAssembler, chapter_file_name, read_epub_body
from .naming import (
    adjust_output_path,
    extract_author_name,
    generate_collection_title,
    sanitize_title,
)
from .transcoder import CalibreTranscoder, find_calibre_path

__all__ = [
    "CalibreTranscoder",
    "EpubAssembler",
    "adjust_output_path",
    "chapter_file_name",
    "extract_author_name",
    "find_calibre_path",
    "generate_collection_title",
    "read_epub_body",
    "sanitize_title",
]
