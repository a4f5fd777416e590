from hybridgomoku.game.types import Player, Point, chebyshev


def test_player_other():
    assert Player.BLACK.other is Player.WHITE
    assert Player.WHITE.other is Player.BLACK


def test_player_str():
    assert str(Player.BLACK) == "Black"
    assert str(Player.WHITE) == "White"


def test_player_initial():
    assert Player.BLACK.initial == "b"
    assert Player.WHITE.initial == "w"


def test_point_is_namedtuple():
    p = Point(3, 5)
    assert p.x == 3
    assert p.y == 5
    assert p == Point(3, 5)


def test_chebyshev_distance():
    assert chebyshev(Point(7, 7), Point(7, 7)) == 0
    assert chebyshev(Point(7, 7), Point(9, 8)) == 2
    assert chebyshev(Point(0, 0), Point(14, 3)) == 14
