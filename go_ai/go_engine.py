"""
Game engine for Go.

This module provides the board rules needed to replay recorded games:
stone placement, move legality (occupied points, suicide and simple ko),
captures, per-point liberty counts and a Zobrist position hash.

Locations are integer indices y * size + x. A pass is represented by None.
"""

from typing import Dict, List, Optional

import numpy as np

from go_ai.enums import Color, Player, get_color_display_symbol, get_opponent, player_to_color

# Column labels used in board dumps (conventionally no 'I')
COLUMN_LABELS = "ABCDEFGHJKLMNOPQRST"

# Fixed seed so position hashes are comparable across runs
ZOBRIST_SEED = 0x5EED60

_ZOBRIST_TABLES: Dict[int, np.ndarray] = {}
_NEIGHBOR_TABLES: Dict[int, List[List[int]]] = {}


def get_loc(x: int, y: int, size: int) -> int:
    """Convert (x, y) to a location index."""
    if not (0 <= x < size and 0 <= y < size):
        raise ValueError(f"Invalid coordinates: ({x}, {y}) for board size {size}")
    return y * size + x


def get_x(loc: int, size: int) -> int:
    return loc % size


def get_y(loc: int, size: int) -> int:
    return loc // size


def loc_to_string(loc: Optional[int], size: int) -> str:
    """Human-readable coordinate, e.g. 'D4', or 'pass'."""
    if loc is None:
        return "pass"
    return f"{COLUMN_LABELS[get_x(loc, size)]}{size - get_y(loc, size)}"


def string_to_loc(text: str, size: int) -> Optional[int]:
    """Inverse of loc_to_string, e.g. 'A1' is the bottom-left corner."""
    text = text.strip().upper()
    if text == "PASS":
        return None
    if len(text) < 2 or text[0] not in COLUMN_LABELS[:size] or not text[1:].isdigit():
        raise ValueError(f"Invalid coordinate: {text}")
    row = int(text[1:])
    if not (1 <= row <= size):
        raise ValueError(f"Invalid coordinate: {text} for board size {size}")
    return get_loc(COLUMN_LABELS.index(text[0]), size - row, size)


def _get_neighbors(size: int) -> List[List[int]]:
    """Precomputed orthogonal neighbor lookup for a board size."""
    if size not in _NEIGHBOR_TABLES:
        neighbors = []
        for y in range(size):
            for x in range(size):
                adjacent = []
                for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < size and 0 <= ny < size:
                        adjacent.append(ny * size + nx)
                neighbors.append(adjacent)
        _NEIGHBOR_TABLES[size] = neighbors
    return _NEIGHBOR_TABLES[size]


def _get_zobrist_table(size: int) -> np.ndarray:
    """Random 63-bit keys indexed by [color, loc]."""
    if size not in _ZOBRIST_TABLES:
        rng = np.random.Generator(np.random.PCG64(ZOBRIST_SEED + size))
        _ZOBRIST_TABLES[size] = rng.integers(1, 2**63 - 1, size=(3, size * size), dtype=np.int64)
    return _ZOBRIST_TABLES[size]


class GoBoard:
    """
    Represents the state of a Go board.

    colors holds Color values as int8, one per location. ko_loc is the point
    the side to move may not play at (simple ko), or None.
    """

    def __init__(self, size: int):
        if size < 2 or size > len(COLUMN_LABELS):
            raise ValueError(f"Unsupported board size: {size}")
        self.size = size
        self.colors = np.zeros(size * size, dtype=np.int8)
        self.ko_loc: Optional[int] = None
        self.pos_hash = 0
        self._neighbors = _get_neighbors(size)
        self._zobrist = _get_zobrist_table(size)
        self._liberty_cache: Dict[int, int] = {}

    def _color_at(self, loc: int) -> int:
        return int(self.colors[loc])

    def _put(self, loc: int, color: int):
        old = self._color_at(loc)
        if old != Color.EMPTY.value:
            self.pos_hash ^= int(self._zobrist[old, loc])
        if color != Color.EMPTY.value:
            self.pos_hash ^= int(self._zobrist[color, loc])
        self.colors[loc] = color
        self._liberty_cache.clear()

    def _get_group(self, loc: int):
        """Return (stones, liberties) of the chain containing loc."""
        color = self._color_at(loc)
        stones = [loc]
        seen = {loc}
        liberties = set()
        i = 0
        while i < len(stones):
            for adj in self._neighbors[stones[i]]:
                adj_color = self._color_at(adj)
                if adj_color == Color.EMPTY.value:
                    liberties.add(adj)
                elif adj_color == color and adj not in seen:
                    seen.add(adj)
                    stones.append(adj)
            i += 1
        return stones, liberties

    def get_num_liberties(self, loc: int) -> int:
        """Liberties of the chain at loc, or 0 for an empty point."""
        if self._color_at(loc) == Color.EMPTY.value:
            return 0
        if loc not in self._liberty_cache:
            stones, liberties = self._get_group(loc)
            for stone in stones:
                self._liberty_cache[stone] = len(liberties)
        return self._liberty_cache[loc]

    def get_color(self, loc: int) -> Color:
        return Color(self._color_at(loc))

    def set_stone(self, loc: int, color: Color) -> bool:
        """
        Place a setup stone without captures.

        Returns:
            False if the point is occupied or the placement leaves any
            adjacent group, or the new stone, without liberties.
        """
        if color == Color.EMPTY:
            self._put(loc, Color.EMPTY.value)
            return True
        if self._color_at(loc) != Color.EMPTY.value:
            return False
        self._put(loc, color.value)
        for check in [loc] + self._neighbors[loc]:
            if self._color_at(check) != Color.EMPTY.value and self.get_num_liberties(check) == 0:
                self._put(loc, Color.EMPTY.value)
                return False
        return True

    def is_legal(self, loc: Optional[int], player: Player) -> bool:
        if loc is None:
            return True
        if not (0 <= loc < self.size * self.size):
            return False
        if self._color_at(loc) != Color.EMPTY.value or loc == self.ko_loc:
            return False
        own = player_to_color(player).value
        opp = player_to_color(get_opponent(player)).value
        for adj in self._neighbors[loc]:
            adj_color = self._color_at(adj)
            if adj_color == Color.EMPTY.value:
                return True
            libs = self.get_num_liberties(adj)
            if adj_color == own and libs > 1:
                return True
            if adj_color == opp and libs == 1:
                return True
        return False

    def play_move(self, loc: Optional[int], player: Player) -> bool:
        """
        Play a move for player, applying captures and updating the ko point.

        Returns:
            False, leaving the board unchanged, if the move is illegal.
        """
        if not self.is_legal(loc, player):
            return False
        self.ko_loc = None
        if loc is None:
            return True

        own = player_to_color(player).value
        opp = player_to_color(get_opponent(player)).value
        self._put(loc, own)

        captured = []
        for adj in self._neighbors[loc]:
            if self._color_at(adj) == opp:
                stones, liberties = self._get_group(adj)
                if not liberties:
                    captured.extend(stones)
                    for stone in stones:
                        self._put(stone, Color.EMPTY.value)

        if len(captured) == 1:
            stones, liberties = self._get_group(loc)
            if len(stones) == 1 and len(liberties) == 1:
                self.ko_loc = captured[0]
        return True

    def to_string(self) -> str:
        """ASCII board dump. '@' marks the ko point."""
        lines = ["   " + " ".join(COLUMN_LABELS[:self.size])]
        for y in range(self.size):
            row = []
            for x in range(self.size):
                loc = y * self.size + x
                if loc == self.ko_loc:
                    row.append("@")
                else:
                    row.append(get_color_display_symbol(self.get_color(loc)))
            lines.append(f"{self.size - y:2d} " + " ".join(row))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()
