"""
SGF game record parsing for Go AI.

Only what the data writer needs is extracted: board size, setup stones and
the main line of moves. Malformed records raise SgfFormatError.
"""

import logging
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from go_ai.config import DEFAULT_SGF_BOARD_SIZE
from go_ai.enums import Player, char_to_player
from go_ai.error_handling import SgfFormatError
from go_ai.go_engine import get_loc

logger = logging.getLogger(__name__)

LETTERS = string.ascii_lowercase

# Properties are a list of values per identifier, nodes are one dict each
SgfNode = Dict[str, List[str]]


@dataclass(frozen=True)
class Move:
    """A placement or move. loc is None for a pass."""
    player: Player
    loc: Optional[int]

    @property
    def is_pass(self) -> bool:
        return self.loc is None


@dataclass
class SgfGame:
    file_name: str
    board_size: int
    placements: List[Move] = field(default_factory=list)
    moves: List[Move] = field(default_factory=list)


# --- Tokenizing ---
def _skip_whitespace(text: str, i: int) -> int:
    while i < len(text) and text[i].isspace():
        i += 1
    return i


def _read_value(text: str, i: int) -> Tuple[str, int]:
    """Read a bracketed property value starting at text[i] == '['."""
    i += 1
    chars = []
    while i < len(text):
        c = text[i]
        if c == "\\":
            if i + 1 >= len(text):
                break
            chars.append(text[i + 1])
            i += 2
            continue
        if c == "]":
            return "".join(chars), i + 1
        chars.append(c)
        i += 1
    raise SgfFormatError("Unterminated property value")


def _read_node(text: str, i: int) -> Tuple[SgfNode, int]:
    """Read the properties of one node; text[i] is just after ';'."""
    node: SgfNode = {}
    while True:
        i = _skip_whitespace(text, i)
        if i >= len(text) or not text[i].isalpha():
            return node, i
        start = i
        while i < len(text) and text[i].isalpha():
            i += 1
        ident = "".join(c for c in text[start:i] if c.isupper())
        if not ident:
            raise SgfFormatError(f"Invalid property identifier '{text[start:i]}' at position {start}")
        i = _skip_whitespace(text, i)
        if i >= len(text) or text[i] != "[":
            raise SgfFormatError(f"Property {ident} has no value at position {i}")
        values = node.setdefault(ident, [])
        while i < len(text) and text[i] == "[":
            value, i = _read_value(text, i)
            values.append(value)
            i = _skip_whitespace(text, i)


def _skip_game_tree(text: str, i: int) -> int:
    """Skip a whole game tree starting at text[i] == '('; return the index after it."""
    depth = 0
    while i < len(text):
        c = text[i]
        if c == "[":
            _, i = _read_value(text, i)
            continue
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    raise SgfFormatError("Unterminated game tree")


def _read_main_line(text: str, i: int) -> Tuple[List[SgfNode], int]:
    """
    Read a game tree starting at text[i] == '(' and return its main line.

    At each branch only the first variation is kept; the others are skipped.
    The walk keeps one stack entry per open tree on the main line.
    """
    i += 1
    nodes: List[SgfNode] = []
    # took_variation[-1] is True once the innermost open tree has branched
    took_variation = [False]
    while True:
        i = _skip_whitespace(text, i)
        if i >= len(text):
            raise SgfFormatError("Unterminated game tree")
        c = text[i]
        if c == ";":
            if took_variation[-1]:
                raise SgfFormatError(f"Node after variation at position {i}")
            node, i = _read_node(text, i + 1)
            nodes.append(node)
        elif c == "(":
            if took_variation[-1]:
                i = _skip_game_tree(text, i)
            else:
                took_variation[-1] = True
                took_variation.append(False)
                i += 1
        elif c == ")":
            took_variation.pop()
            i += 1
            if not took_variation:
                return nodes, i
        else:
            raise SgfFormatError(f"Unexpected character '{c}' at position {i}")


def parse_sgf_nodes(text: str) -> List[SgfNode]:
    """Return the main-line nodes of the first game tree in an SGF collection."""
    start = text.find("(")
    if start < 0:
        raise SgfFormatError("No game tree found")
    nodes, _ = _read_main_line(text, start)
    if not nodes:
        raise SgfFormatError("Game tree has no nodes")
    return nodes


# --- Property conversion ---
def parse_board_size(nodes: List[SgfNode]) -> int:
    values = nodes[0].get("SZ")
    if not values:
        return DEFAULT_SGF_BOARD_SIZE
    size_text = values[0].strip()
    if ":" in size_text:
        width, height = size_text.split(":", 1)
        if width.strip() != height.strip():
            raise SgfFormatError(f"Non-square board size: {size_text}")
        size_text = width
    try:
        size = int(size_text)
    except ValueError:
        raise SgfFormatError(f"Invalid board size: {size_text}")
    if not (2 <= size <= 25):
        raise SgfFormatError(f"Invalid board size: {size}")
    return size


def sgf_point_to_loc(point: str, board_size: int) -> Optional[int]:
    """
    Convert an SGF point like 'dd' to a location. Returns None for a pass
    ('' always, 'tt' on boards up to 19x19).
    """
    point = point.strip()
    if point == "" or (point == "tt" and board_size <= 19):
        return None
    if len(point) != 2 or point[0] not in LETTERS or point[1] not in LETTERS:
        raise SgfFormatError(f"Invalid point: '{point}'")
    x = LETTERS.index(point[0])
    y = LETTERS.index(point[1])
    if x >= board_size or y >= board_size:
        raise SgfFormatError(f"Point '{point}' is off a {board_size}x{board_size} board")
    return get_loc(x, y, board_size)


def expand_point_list(value: str, board_size: int) -> List[int]:
    """Expand an SGF point or compressed rectangle 'aa:cc' to locations."""
    if ":" not in value:
        loc = sgf_point_to_loc(value, board_size)
        if loc is None:
            raise SgfFormatError(f"Pass is not a valid setup point: '{value}'")
        return [loc]
    first, second = value.split(":", 1)
    x1, y1 = _point_to_xy(first, board_size)
    x2, y2 = _point_to_xy(second, board_size)
    return [
        get_loc(x, y, board_size)
        for y in range(min(y1, y2), max(y1, y2) + 1)
        for x in range(min(x1, x2), max(x1, x2) + 1)
    ]


def _point_to_xy(point: str, board_size: int) -> Tuple[int, int]:
    loc = sgf_point_to_loc(point, board_size)
    if loc is None:
        raise SgfFormatError(f"Pass is not a valid rectangle corner: '{point}'")
    return loc % board_size, loc // board_size


def extract_placements(nodes: List[SgfNode], board_size: int) -> List[Move]:
    """Setup stones (AB/AW) from every main-line node, in order."""
    placements = []
    for node in nodes:
        for ident, player in (("AB", Player.BLACK), ("AW", Player.WHITE)):
            for value in node.get(ident, []):
                for loc in expand_point_list(value, board_size):
                    placements.append(Move(player, loc))
    return placements


def extract_moves(nodes: List[SgfNode], board_size: int) -> List[Move]:
    """Main-line B/W moves, in order."""
    moves = []
    for node in nodes:
        for ident in ("B", "W"):
            for value in node.get(ident, []):
                moves.append(Move(char_to_player(ident), sgf_point_to_loc(value, board_size)))
    return moves


def parse_sgf(text: str, file_name: str = "") -> SgfGame:
    """
    Parse an SGF game record.

    Args:
        text: Contents of an SGF file
        file_name: Source name kept for error messages

    Returns:
        SgfGame with board size, setup placements and main-line moves

    Raises:
        SgfFormatError: If the record is malformed
    """
    nodes = parse_sgf_nodes(text)
    board_size = parse_board_size(nodes)
    return SgfGame(
        file_name=file_name,
        board_size=board_size,
        placements=extract_placements(nodes, board_size),
        moves=extract_moves(nodes, board_size),
    )


def load_sgf_file(file_path) -> SgfGame:
    """
    Load and parse a single .sgf file.

    Raises:
        FileNotFoundError: If file doesn't exist
        SgfFormatError: If the file is empty or malformed
    """
    file_path = Path(file_path)
    try:
        text = file_path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {file_path}")
    if not text.strip():
        raise SgfFormatError(f"Empty file: {file_path}")
    return parse_sgf(text, file_name=str(file_path))
