"""
CSV decoding into a cell grid.

Encoding detection, delimiter sniffing and a ragged row-by-row read, so
title or metadata lines above the header do not break the parse.
"""
import csv
import io
import logging
from typing import Any, Dict, List, Tuple

import chardet

from core.errors import InputShapeError

logger = logging.getLogger(__name__)


def detect_encoding(file_content: bytes) -> Tuple[str, float]:
    """
    Detect the file encoding trying utf-8-sig → utf-8 → latin-1.

    Args:
        file_content: File content (bytes)

    Returns:
        Tuple (encoding, confidence)
    """
    encoding_result = chardet.detect(file_content[:10000])  # first 10KB
    confidence = encoding_result.get('confidence') or 0.0

    for enc in ['utf-8-sig', 'utf-8', 'cp1252', 'latin-1']:
        try:
            file_content.decode(enc)
            logger.debug(f"[CSV_PARSER] Encoding detection: {enc} (confidence={confidence:.2f})")
            return enc, confidence
        except (UnicodeDecodeError, LookupError):
            continue

    # latin-1 decodes any byte sequence, kept as a last resort
    return 'latin-1', 0.0


def detect_delimiter(text: str, sample_lines: int = 10) -> str:
    """
    Detect the CSV delimiter with csv.Sniffer, falling back to counting.

    Args:
        text: Decoded file content
        sample_lines: Lines to analyse

    Returns:
        Delimiter (',', ';', '\\t', '|')
    """
    lines = [line for line in text.splitlines()[:sample_lines] if line.strip()]
    if not lines:
        return ','

    try:
        delimiter = csv.Sniffer().sniff('\n'.join(lines), delimiters=',;\t|').delimiter
        logger.debug(f"[CSV_PARSER] CSV Sniffer detected delimiter: '{delimiter}'")
        return delimiter
    except csv.Error:
        pass

    # Fallback: most frequent candidate across the sample
    scores = {sep: sum(line.count(sep) for line in lines) for sep in [';', ',', '\t', '|']}
    best_sep = max(scores.items(), key=lambda x: x[1])[0]
    if scores[best_sep] == 0:
        best_sep = ','
    logger.debug(f"[CSV_PARSER] Fallback delimiter detection: '{best_sep}'")
    return best_sep


def parse_csv(file_content: bytes) -> Tuple[List[List[Any]], Dict[str, Any]]:
    """
    Decode a CSV file into a grid of string cells.

    Args:
        file_content: File content (bytes)

    Returns:
        Tuple (grid, detection_info)

    Raises:
        InputShapeError: Empty or undecodable file
    """
    if not file_content or not file_content.strip():
        raise InputShapeError("Empty or unreadable file")

    encoding, enc_confidence = detect_encoding(file_content)
    text = file_content.decode(encoding)
    separator = detect_delimiter(text)

    try:
        grid = [row for row in csv.reader(io.StringIO(text), delimiter=separator)]
    except csv.Error as e:
        logger.error(f"[CSV_PARSER] Error parsing CSV: {e}")
        raise InputShapeError(f"Error parsing CSV: {e}") from e

    grid = [row for row in grid if any(cell.strip() for cell in row)]
    if not grid:
        raise InputShapeError("Empty or unreadable file")

    logger.info(
        f"[CSV_PARSER] CSV parsed: {len(grid)} rows, encoding={encoding}, separator='{separator}'"
    )

    detection_info = {
        'encoding': encoding,
        'encoding_confidence': enc_confidence,
        'separator': separator,
        'rows': len(grid),
    }
    return grid, detection_info
