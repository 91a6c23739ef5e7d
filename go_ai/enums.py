"""
Centralized enum definitions for Go AI semantic types.

This module is the single source of truth for representing players, board
point colors and feature planes. Other modules should import these Enums
rather than duplicating constants.
"""

from enum import Enum


class StrictEnum(Enum):
    """Base class for enums that prevent cross-type comparisons."""
    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            raise TypeError(f"Cannot compare {self.__class__.__name__} with {type(other).__name__}")
        return super().__eq__(other)

    def __hash__(self):
        """Make enums hashable so they can be used as dictionary keys."""
        return hash(self.value)


class Player(StrictEnum):
    """The side making a move. Values match the Color of its stones."""
    BLACK = 1
    WHITE = 2


class Color(StrictEnum):
    """Contents of a board point (stored as int8 in GoBoard.colors)."""
    EMPTY = 0
    BLACK = 1
    WHITE = 2


class Feature(StrictEnum):
    """Feature plane indices within a row's input region."""
    ON_BOARD = 0
    OWN_STONE = 1
    OPP_STONE = 2
    OWN_LIBS_1 = 3
    OWN_LIBS_2 = 4
    OWN_LIBS_3 = 5
    OPP_LIBS_1 = 6
    OPP_LIBS_2 = 7
    OPP_LIBS_3 = 8
    PREV_MOVE_1 = 9
    PREV_MOVE_2 = 10
    PREV_MOVE_3 = 11
    KO_POINT = 12


# Liberty one-hot planes, indexed by liberty count - 1
OWN_LIBERTY_FEATURES = (Feature.OWN_LIBS_1, Feature.OWN_LIBS_2, Feature.OWN_LIBS_3)
OPP_LIBERTY_FEATURES = (Feature.OPP_LIBS_1, Feature.OPP_LIBS_2, Feature.OPP_LIBS_3)
PREV_MOVE_FEATURES = (Feature.PREV_MOVE_1, Feature.PREV_MOVE_2, Feature.PREV_MOVE_3)


# ============================================================================
# Helper Functions for Enum-Primitive Conversion
# ============================================================================

def get_opponent(player: Player) -> Player:
    """Return the other side."""
    return Player.WHITE if player == Player.BLACK else Player.BLACK


def player_to_color(player: Player) -> Color:
    """Convert Player enum to the Color of its stones."""
    return Color(player.value)


def char_to_player(char: str) -> Player:
    """Convert an SGF property identifier ('B' or 'W') to Player enum."""
    mapping = {"B": Player.BLACK, "W": Player.WHITE}
    if char not in mapping:
        raise ValueError(f"Invalid player character: {char}")
    return mapping[char]


def player_to_char(player: Player) -> str:
    """Convert Player enum to its SGF property identifier."""
    return "B" if player == Player.BLACK else "W"


def feature_to_int(feature: Feature) -> int:
    """Convert Feature enum to its plane index."""
    return feature.value


# ============================================================================
# Display Helpers
# ============================================================================

def get_color_display_symbol(color: Color) -> str:
    """Get the display symbol for a board point."""
    symbols = {
        Color.EMPTY: ".",
        Color.BLACK: "X",
        Color.WHITE: "O"
    }
    return symbols[color]
