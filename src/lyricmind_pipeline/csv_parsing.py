"""CSV line splitting and header validation for song datasets.

Only double quotes are recognised as quoting characters and there is no
escaped-quote convention: every `"` flips the quoting state.
"""

from typing import Dict, List, Sequence

from .errors import MissingColumnError

REQUIRED_COLUMNS = ("Artist", "Title", "Album", "Year", "Date", "Lyric")


def parse_csv_line(line: str) -> List[str]:
    """
    Split one CSV line into trimmed fields.

    Commas inside a quoted section are kept as text; the quote characters
    themselves are dropped. Unbalanced quotes never raise, the remainder of
    the line is simply read in whatever state the last quote left.

    Example:
        >>> parse_csv_line('A,B,"Hello, world"')
        ['A', 'B', 'Hello, world']
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    fields.append("".join(current).strip())
    return fields


def build_column_index(header_fields: Sequence[str]) -> Dict[str, int]:
    """
    Map trimmed header names to their positions and check required columns.

    Args:
        header_fields: Fields of the header line

    Returns:
        Dict of column name -> index (later duplicates overwrite earlier ones)

    Raises:
        MissingColumnError: For the first required column not in the header
    """
    column_index: Dict[str, int] = {}
    for idx, name in enumerate(header_fields):
        column_index[name.strip()] = idx

    for column in REQUIRED_COLUMNS:
        if column not in column_index:
            raise MissingColumnError(column)

    return column_index
