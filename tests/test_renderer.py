from hybridgomoku.game.board import BOARD_SIZE, CENTER, GomokuGameState
from hybridgomoku.game.types import Point
from hybridgomoku.ui.board_component import CLICK_JS, render_board_svg

ALL_POINTS = BOARD_SIZE * BOARD_SIZE


def _black_wins():
    g = GomokuGameState()
    for i in range(4):
        g.apply_move(Point(i, 0))
        g.apply_move(Point(i, 1))
    g.apply_move(Point(4, 0))
    return g


def test_empty_board_svg():
    html = render_board_svg(GomokuGameState())
    assert "<svg" in html
    assert "</svg>" in html
    assert "gomoku-board" in html
    assert html.count('class="board-click"') == ALL_POINTS


def test_svg_with_stones():
    g = GomokuGameState()
    g.apply_move(CENTER)
    g.apply_move(Point(6, 6))
    html = render_board_svg(g)
    assert html.count('class="board-click"') == ALL_POINTS - 2
    assert 'data-coord="H8"' not in html
    assert html.count('class="last-move"') == 1


def test_click_targets_use_text_coordinates():
    html = render_board_svg(GomokuGameState())
    assert 'data-coord="A1"' in html
    assert 'data-coord="O15"' in html


def test_svg_not_clickable_when_game_over():
    html = render_board_svg(_black_wins())
    assert html.count('class="board-click"') == 0


def test_svg_not_clickable_when_disabled():
    html = render_board_svg(GomokuGameState(), clickable=False)
    assert html.count('class="board-click"') == 0


def test_game_over_banner_displayed():
    html = render_board_svg(_black_wins(), game_over_message="You win!")
    assert "You win!" in html
    assert 'class="game-over"' in html


def test_no_banner_while_playing():
    html = render_board_svg(GomokuGameState())
    assert 'class="game-over"' not in html


def test_hint_ring_on_empty_point():
    g = GomokuGameState()
    g.apply_move(CENTER)
    assert 'class="hint"' in render_board_svg(g, hint=Point(8, 8))
    assert 'class="hint"' not in render_board_svg(g, hint=CENTER)


def test_click_js_targets_board():
    assert "board-click" in CLICK_JS
    assert "coord-submit" in CLICK_JS
