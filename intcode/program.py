"""
Intcode program text parser.

Format: signed decimal integers separated by commas, optionally wrapped
in whitespace or newlines. "1,9,10,3, 2,3,11,0,\n99" is fine; an empty
token (",," or a trailing comma), "1_000", "0x10" or "3.0" is not.
"""

import logging
import re
from typing import List

from .errors import ParseError

log = logging.getLogger(__name__)

_INT_RE = re.compile(r'[+-]?[0-9]+')


def parse_program(source: str) -> List[int]:
    """Parse program text into the initial memory tape.

    Raises ParseError naming the first offending token and its index.
    """
    cells = []
    for position, token in enumerate(source.split(',')):
        token = token.strip()
        if not _INT_RE.fullmatch(token):
            raise ParseError(token, position)
        cells.append(int(token))
    log.debug("Parsed program: %d cells", len(cells))
    return cells
