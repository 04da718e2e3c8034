#!/usr/bin/env python
"""
Text Chunking Utility

This module splits extracted page text into overlapping character chunks
before embedding. Email bodies are embedded whole and never pass through
here.
"""

import logging
from typing import List

from langchain_text_splitters import RecursiveCharacterTextSplitter

logger = logging.getLogger(__name__)


class TextChunker:
    """
    Character-based chunker around ``RecursiveCharacterTextSplitter``.

    Chunks are returned in document order; empty and whitespace-only chunks
    are dropped so the chunk count matches the number of vectors written.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200) -> None:
        """
        Initialize text chunker.

        Args:
            chunk_size: Maximum characters per chunk
            chunk_overlap: Characters shared between consecutive chunks
        """
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size, chunk_overlap=chunk_overlap
        )
        logger.debug(f"TextChunker initialized: {chunk_size} chars/chunk, {chunk_overlap} overlap")

    def split(self, text: str) -> List[str]:
        if not text or not text.strip():
            return []
        return [c for c in self.splitter.split_text(text) if c.strip()]
