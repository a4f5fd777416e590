import pytest

from hybridgomoku.errors import InvalidBoardError
from hybridgomoku.game.board import (
    BOARD_SIZE,
    CENTER,
    Board,
    GomokuGameState,
    format_point,
    parse_coordinate,
)
from hybridgomoku.game.types import Player, Point

EMPTY_ROW = "." * BOARD_SIZE


def _rows(**marks):
    """15 empty rows with overrides keyed like r7='.......X.......'."""
    return [marks.get(f"r{y}", EMPTY_ROW) for y in range(BOARD_SIZE)]


def _play_line(g, black, white):
    for b, w in zip(black, white):
        g.apply_move(b)
        g.apply_move(w)


class TestParseCoordinate:
    def test_valid(self):
        assert parse_coordinate("A1") == Point(0, 0)
        assert parse_coordinate("H8") == Point(7, 7)
        assert parse_coordinate("O15") == Point(14, 14)
        assert parse_coordinate("h8") == Point(7, 7)  # case insensitive

    def test_invalid(self):
        assert parse_coordinate("") is None
        assert parse_coordinate("Z1") is None
        assert parse_coordinate("A0") is None
        assert parse_coordinate("A16") is None
        assert parse_coordinate("XX") is None


class TestFormatPoint:
    def test_basic(self):
        assert format_point(Point(0, 0)) == "A1"
        assert format_point(CENTER) == "H8"
        assert format_point(Point(14, 14)) == "O15"

    def test_round_trip_corner(self):
        assert parse_coordinate(format_point(Point(14, 0))) == Point(14, 0)


class TestBoard:
    def test_place_and_get(self):
        b = Board()
        p = Point(3, 4)
        b.place(p, Player.BLACK)
        assert b.get(p) is Player.BLACK
        assert not b.is_empty(p)

    def test_remove(self):
        b = Board()
        p = Point(3, 4)
        b.place(p, Player.BLACK)
        b.remove(p)
        assert b.is_empty(p)

    def test_is_on_grid(self):
        b = Board()
        assert b.is_on_grid(Point(0, 0))
        assert b.is_on_grid(Point(14, 14))
        assert not b.is_on_grid(Point(-1, 0))
        assert not b.is_on_grid(Point(0, 15))

    def test_with_stone_leaves_original(self):
        b = Board()
        b2 = b.with_stone(CENTER, Player.BLACK)
        assert b.is_empty(CENTER)
        assert b2.get(CENTER) is Player.BLACK

    def test_place_on_occupied_asserts(self):
        b = Board()
        b.place(CENTER, Player.BLACK)
        with pytest.raises(AssertionError):
            b.place(CENTER, Player.WHITE)

    def test_counts(self):
        b = Board()
        b.place(CENTER, Player.BLACK)
        b.place(Point(6, 6), Player.WHITE)
        assert b.occupied_count == 2
        assert b.empty_count == BOARD_SIZE * BOARD_SIZE - 2

    def test_signature_is_row_major(self):
        b = Board()
        b.place(CENTER, Player.BLACK)
        b.place(Point(6, 6), Player.WHITE)
        assert b.signature() == "w6,6;b7,7"

    def test_signature_ignores_placement_order(self):
        b1 = Board()
        b1.place(Point(1, 1), Player.BLACK)
        b1.place(Point(2, 2), Player.WHITE)
        b2 = Board()
        b2.place(Point(2, 2), Player.WHITE)
        b2.place(Point(1, 1), Player.BLACK)
        assert b1.signature() == b2.signature()
        assert b1 == b2


class TestFromRows:
    def test_parses_symbols(self):
        b = Board.from_rows(_rows(r7="......OX+......"))
        assert b.get(Point(6, 7)) is Player.WHITE
        assert b.get(Point(7, 7)) is Player.BLACK
        assert b.is_empty(Point(8, 7))
        assert b.occupied_count == 2

    def test_spaces_ignored(self):
        row = " ".join("." * BOARD_SIZE)
        b = Board.from_rows([row] * BOARD_SIZE)
        assert b.occupied_count == 0

    def test_wrong_row_count(self):
        with pytest.raises(InvalidBoardError):
            Board.from_rows([EMPTY_ROW] * 14)

    def test_short_row(self):
        with pytest.raises(InvalidBoardError) as exc:
            Board.from_rows(_rows(r3="." * 10))
        assert exc.value.context["row"] == 3

    def test_unknown_symbol(self):
        with pytest.raises(InvalidBoardError):
            Board.from_rows(_rows(r0="Q" + "." * 14))


class TestGomokuGameState:
    def test_initial_state(self):
        g = GomokuGameState()
        assert g.current_player is Player.BLACK
        assert not g.is_over
        assert g.winner is None
        assert len(g.legal_moves()) == BOARD_SIZE * BOARD_SIZE

    def test_alternating_turns(self):
        g = GomokuGameState()
        g.apply_move(Point(5, 5))
        assert g.current_player is Player.WHITE
        g.apply_move(Point(5, 6))
        assert g.current_player is Player.BLACK

    def test_move_ply(self):
        g = GomokuGameState()
        first = g.apply_move(CENTER)
        second = g.apply_move(Point(6, 6))
        assert (first.ply, second.ply) == (0, 1)
        assert second.player is Player.WHITE

    def test_horizontal_win(self):
        g = GomokuGameState()
        _play_line(g, [Point(i, 0) for i in range(4)], [Point(i, 1) for i in range(4)])
        g.apply_move(Point(4, 0))  # Black wins
        assert g.is_over
        assert g.winner is Player.BLACK

    def test_vertical_win(self):
        g = GomokuGameState()
        _play_line(g, [Point(0, i) for i in range(4)], [Point(1, i) for i in range(4)])
        g.apply_move(Point(0, 4))
        assert g.is_over
        assert g.winner is Player.BLACK

    def test_diagonal_win(self):
        g = GomokuGameState()
        _play_line(g, [Point(i, i) for i in range(4)], [Point(i, 9) for i in range(4)])
        g.apply_move(Point(4, 4))
        assert g.is_over
        assert g.winner is Player.BLACK

    def test_anti_diagonal_win(self):
        g = GomokuGameState()
        _play_line(
            g, [Point(i, 6 - i) for i in range(1, 5)], [Point(i, 12) for i in range(1, 5)]
        )
        g.apply_move(Point(5, 1))
        assert g.is_over
        assert g.winner is Player.BLACK

    def test_no_premature_win(self):
        """4 in a row should NOT trigger a win."""
        g = GomokuGameState()
        _play_line(g, [Point(i, 0) for i in range(4)], [Point(i, 1) for i in range(4)])
        assert not g.is_over

    def test_undo_move(self):
        g = GomokuGameState()
        g.apply_move(Point(5, 5))
        g.apply_move(Point(5, 6))
        move = g.undo_move()
        assert move is not None
        assert move.point == Point(5, 6)
        assert g.current_player is Player.WHITE
        assert g.board.is_empty(Point(5, 6))

    def test_undo_reverses_win(self):
        g = GomokuGameState()
        _play_line(g, [Point(i, 0) for i in range(4)], [Point(i, 1) for i in range(4)])
        g.apply_move(Point(4, 0))
        assert g.is_over

        g.undo_move()
        assert not g.is_over
        assert g.winner is None

    def test_undo_empty_returns_none(self):
        g = GomokuGameState()
        assert g.undo_move() is None

    def test_cannot_play_on_occupied(self):
        g = GomokuGameState()
        g.apply_move(Point(5, 5))
        with pytest.raises(AssertionError):
            g.apply_move(Point(5, 5))

    def test_cannot_play_after_game_over(self):
        g = GomokuGameState()
        _play_line(g, [Point(i, 0) for i in range(4)], [Point(i, 1) for i in range(4)])
        g.apply_move(Point(4, 0))
        with pytest.raises(AssertionError):
            g.apply_move(Point(10, 10))

    def test_legal_moves_empty_after_game_over(self):
        g = GomokuGameState()
        _play_line(g, [Point(i, 0) for i in range(4)], [Point(i, 1) for i in range(4)])
        g.apply_move(Point(4, 0))
        assert g.legal_moves() == []

    def test_resign(self):
        g = GomokuGameState()
        g.apply_move(CENTER)
        g.resign(Player.WHITE)
        assert g.is_over
        assert g.winner is Player.BLACK
