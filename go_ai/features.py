"""
Feature extraction for Go move prediction.

GameReplayEncoder replays a parsed game against GoBoard and writes one row
per non-pass move into the shuffle pool. Each row holds the position before
the move as NUM_FEATURES planes over the MAX_BOARD_SIZE grid (channels last,
smaller boards centered), a one-hot target at the played point and a weight.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Set

import numpy as np

from go_ai.config import (
    DEFAULT_ROW_WEIGHT, FEATURE_ON, MAX_BOARD_SIZE, NUM_FEATURES, PREV_MOVE_INCLUDE_PROBS,
    SUPPORTED_BOARD_SIZES, TARGET_OFFSET, WEIGHT_OFFSET
)
from go_ai.data_pool import ShuffleSplitPool
from go_ai.enums import (
    Feature, OPP_LIBERTY_FEATURES, OWN_LIBERTY_FEATURES, PREV_MOVE_FEATURES,
    feature_to_int, get_opponent, player_to_char, player_to_color
)
from go_ai.error_handling import GameErrorTracker
from go_ai.go_engine import GoBoard, get_x, get_y, loc_to_string
from go_ai.sgf_parser import Move, SgfGame
from go_ai.utils.random_utils import RandomSource

logger = logging.getLogger(__name__)


def board_offset(board_size: int) -> int:
    """Offset that centers a board_size board on the MAX_BOARD_SIZE grid."""
    if board_size > MAX_BOARD_SIZE:
        raise ValueError(f"Board size {board_size} exceeds maximum {MAX_BOARD_SIZE}")
    return (MAX_BOARD_SIZE - board_size) // 2


def xy_to_tensor_pos(x: int, y: int, offset: int) -> int:
    return (y + offset) * MAX_BOARD_SIZE + (x + offset)


def loc_to_tensor_pos(loc: int, board_size: int, offset: int) -> int:
    return xy_to_tensor_pos(get_x(loc, board_size), get_y(loc, board_size), offset)


def set_feature(row: np.ndarray, pos: int, feature: Feature, value: float = FEATURE_ON):
    row[pos * NUM_FEATURES + feature_to_int(feature)] = value


def fill_row(board: GoBoard, moves: List[Move], next_move_idx: int, row: np.ndarray,
             rand: RandomSource) -> None:
    """
    Encode the position before moves[next_move_idx] into a zeroed row.

    Args:
        board: Board state before the move is played
        moves: Full move list of the game
        next_move_idx: Index of the move used as the prediction target
        row: Zeroed row of length TOTAL_ROW_LEN, written in place
        rand: Random source for the previous-move features
    """
    if not (0 <= next_move_idx < len(moves)):
        raise IndexError(f"Move index {next_move_idx} out of range for {len(moves)} moves")
    next_move = moves[next_move_idx]
    if next_move.is_pass:
        raise ValueError("Cannot build a training row for a pass")

    pla = next_move.player
    opp = get_opponent(pla)
    pla_color = player_to_color(pla).value
    opp_color = player_to_color(opp).value
    b_size = board.size
    offset = board_offset(b_size)

    for y in range(b_size):
        for x in range(b_size):
            pos = xy_to_tensor_pos(x, y, offset)
            loc = y * b_size + x
            set_feature(row, pos, Feature.ON_BOARD)

            stone = int(board.colors[loc])
            if stone == pla_color:
                set_feature(row, pos, Feature.OWN_STONE)
                libs = board.get_num_liberties(loc)
                if 1 <= libs <= 3:
                    set_feature(row, pos, OWN_LIBERTY_FEATURES[libs - 1])
            elif stone == opp_color:
                set_feature(row, pos, Feature.OPP_STONE)
                libs = board.get_num_liberties(loc)
                if 1 <= libs <= 3:
                    set_feature(row, pos, OPP_LIBERTY_FEATURES[libs - 1])

    # Previous moves are included at random as a regularizer. Each one is
    # only considered while the history keeps alternating sides.
    include_prev = []
    include = True
    for prob in PREV_MOVE_INCLUDE_PROBS:
        include = include and rand.next_double() < prob
        include_prev.append(include)

    expected = opp
    for back, feature in enumerate(PREV_MOVE_FEATURES, start=1):
        idx = next_move_idx - back
        if idx < 0 or moves[idx].player != expected or not include_prev[back - 1]:
            break
        if not moves[idx].is_pass:
            set_feature(row, loc_to_tensor_pos(moves[idx].loc, b_size, offset), feature)
        expected = get_opponent(expected)

    if board.ko_loc is not None:
        set_feature(row, loc_to_tensor_pos(board.ko_loc, b_size, offset), Feature.KO_POINT)

    row[TARGET_OFFSET + loc_to_tensor_pos(next_move.loc, b_size, offset)] = FEATURE_ON
    row[WEIGHT_OFFSET] = DEFAULT_ROW_WEIGHT


@dataclass
class EncoderStats:
    games_processed: int = 0
    games_filtered: int = 0  # unsupported board size
    games_aborted: int = 0   # illegal placement or move
    rows_emitted: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class GameReplayEncoder:
    """Replays games and feeds one row per non-pass move into a ShuffleSplitPool."""

    def __init__(self, pool: ShuffleSplitPool, rand: RandomSource,
                 supported_sizes=SUPPORTED_BOARD_SIZES,
                 error_tracker: Optional[GameErrorTracker] = None):
        self.pool = pool
        self.rand = rand
        self.supported_sizes = frozenset(supported_sizes)
        for size in self.supported_sizes:
            board_offset(size)
        self.error_tracker = error_tracker or GameErrorTracker()
        self.position_hashes: Set[int] = set()
        self.stats = EncoderStats()

    def process_game(self, game: SgfGame) -> int:
        """
        Replay one game and emit its rows.

        Returns:
            Number of rows emitted. Rows emitted before a rule violation are
            kept; the rest of that game is skipped.
        """
        if game.board_size not in self.supported_sizes:
            self.stats.games_filtered += 1
            return 0
        self.stats.games_processed += 1

        board = GoBoard(game.board_size)
        for i, placement in enumerate(game.placements):
            if not board.set_stone(placement.loc, player_to_color(placement.player)):
                self._abort(game, board, i, "Illegal stone placement", placement)
                return 0

        moves = game.moves
        j = 0
        # Some records encode handicap stones as a leading run of moves by
        # one side. Apply that run directly instead of rejecting the game.
        if len(moves) > 1 and moves[0].player == moves[1].player:
            handicap_player = moves[0].player
            while j < len(moves) and moves[j].player == handicap_player:
                if not board.play_move(moves[j].loc, moves[j].player):
                    self._abort(game, board, j, "Illegal move!", moves[j])
                    return 0
                j += 1

        num_rows = 0
        prev_player = None
        while j < len(moves):
            move = moves[j]
            if prev_player is not None and move.player == prev_player:
                self._abort(game, board, j, "Multiple moves in a row by same player at", move)
                break

            if not move.is_pass:
                with self.pool.add_row(self.rand) as row:
                    fill_row(board, moves, j, row, self.rand)
                self.position_hashes.add(board.pos_hash)
                num_rows += 1

            if not board.play_move(move.loc, move.player):
                self._abort(game, board, j, "Illegal move!", move)
                break

            prev_player = move.player
            j += 1

        self.stats.rows_emitted += num_rows
        return num_rows

    def _abort(self, game: SgfGame, board: GoBoard, idx: int, reason: str, move: Move):
        self.stats.games_aborted += 1
        offending = f"{player_to_char(move.player)} {loc_to_string(move.loc, board.size)}"
        board_dump = f"Offending move: {offending}\n{board}"
        self.error_tracker.record_aborted_game(game.file_name, idx, reason, board_dump=board_dump)
