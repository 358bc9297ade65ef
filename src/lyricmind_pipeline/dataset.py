"""Dataset generation: CSV source -> ordered list of normalized songs."""

import logging
from contextlib import closing

from .csv_parsing import build_column_index, parse_csv_line
from .errors import EmptySourceError
from .loaders import SongSource, iter_source_lines
from .models import DatasetResult, RowFailure
from .transformers import normalize_row

logger = logging.getLogger(__name__)


def generate_song_requests(source: SongSource) -> DatasetResult:
    """
    Read a song CSV and normalize every data row.

    The first line is the header. Rows that fail to parse or normalize are
    logged, recorded in `DatasetResult.failures` with their line number and
    skipped; the load carries on with the next line. Output keeps source
    order. A file opened from a path is closed before returning or raising.

    Args:
        source: Path to the CSV file or an open text stream

    Returns:
        DatasetResult with the normalized songs and the skipped rows

    Raises:
        EmptySourceError: If the source has no lines at all
        MissingColumnError: If the header lacks a required column
        FileNotFoundError: If `source` is a path that does not exist
    """
    with closing(iter_source_lines(source)) as lines:
        header_line = next(lines, None)
        if header_line is None:
            raise EmptySourceError(f"CSV source is empty: {source}")

        header_fields = parse_csv_line(header_line)
        column_index = build_column_index(header_fields)
        header_width = len(header_fields)

        logger.debug("Header has %d columns: %s", header_width, header_fields)

        result = DatasetResult()
        line_number = 1

        for line in lines:
            line_number += 1
            try:
                values = parse_csv_line(line)
                song = normalize_row(
                    values,
                    column_index,
                    line_number=line_number,
                    expected_width=header_width,
                )
            except Exception as e:
                logger.warning("Skipping row at line %d: %s", line_number, e)
                result.failures.append(RowFailure(line_number=line_number, reason=str(e)))
                continue

            result.songs.append(song)

    logger.info(
        "Normalized %d songs from %d data rows (skipped=%d)",
        len(result.songs),
        line_number - 1,
        len(result.failures),
    )
    return result
