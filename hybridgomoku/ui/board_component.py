"""SVG board renderer + JavaScript click handler for Gradio."""

from __future__ import annotations

from typing import Optional

from hybridgomoku.game.board import BOARD_SIZE, CENTER, COL_LABELS, GomokuGameState, format_point
from hybridgomoku.game.types import Player, Point

# Layout constants
CELL_SIZE = 40
MARGIN = 36
BOARD_PX = MARGIN * 2 + CELL_SIZE * (BOARD_SIZE - 1)
STONE_RADIUS = 17
CLICK_RADIUS = 18  # Invisible click target radius

# Colors
BG_COLOR = "#DCB35C"
LINE_COLOR = "#4A3728"
BLACK_STONE = "#1A1A1A"
WHITE_STONE = "#F5F5F5"
WHITE_STROKE = "#888"
HINT_COLOR = "#2E86C1"
BANNER_BG = "rgba(0, 0, 0, 0.6)"

# Star points on a 15x15 board
STAR_POINTS = [Point(3, 3), Point(11, 3), CENTER, Point(3, 11), Point(11, 11)]


def _coord(point: Point) -> tuple[int, int]:
    """Convert a 0-indexed board point to SVG pixel coordinates (row 1 on top)."""
    return MARGIN + point.x * CELL_SIZE, MARGIN + point.y * CELL_SIZE


def render_board_svg(
    game_state: GomokuGameState,
    clickable: bool = True,
    highlight_last: bool = True,
    game_over_message: str = "",
    hint: Optional[Point] = None,
) -> str:
    """Render the board as an SVG string.

    `hint` draws a ring on an empty point, e.g. the engine's unchosen alternative.
    """
    parts: list[str] = []

    parts.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{BOARD_PX}" height="{BOARD_PX}" '
        f'viewBox="0 0 {BOARD_PX} {BOARD_PX}" '
        f'id="gomoku-board">'
    )
    parts.append(
        f'<rect width="{BOARD_PX}" height="{BOARD_PX}" fill="{BG_COLOR}" rx="4"/>'
    )

    # Grid lines
    far = MARGIN + (BOARD_SIZE - 1) * CELL_SIZE
    for i in range(BOARD_SIZE):
        pos = MARGIN + i * CELL_SIZE
        parts.append(
            f'<line x1="{pos}" y1="{MARGIN}" x2="{pos}" y2="{far}" '
            f'stroke="{LINE_COLOR}" stroke-width="1"/>'
        )
        parts.append(
            f'<line x1="{MARGIN}" y1="{pos}" x2="{far}" y2="{pos}" '
            f'stroke="{LINE_COLOR}" stroke-width="1"/>'
        )

    for star in STAR_POINTS:
        cx, cy = _coord(star)
        parts.append(f'<circle cx="{cx}" cy="{cy}" r="3.5" fill="{LINE_COLOR}"/>')

    # Column labels (top) and row labels (left)
    for i in range(BOARD_SIZE):
        x, _ = _coord(Point(i, 0))
        parts.append(
            f'<text x="{x}" y="{MARGIN - 14}" text-anchor="middle" '
            f'font-size="13" font-family="monospace" fill="{LINE_COLOR}">'
            f'{COL_LABELS[i]}</text>'
        )
        _, y = _coord(Point(0, i))
        parts.append(
            f'<text x="{MARGIN - 20}" y="{y + 5}" text-anchor="middle" '
            f'font-size="13" font-family="monospace" fill="{LINE_COLOR}">'
            f'{i + 1}</text>'
        )

    # Stones
    last_point: Optional[Point] = None
    if game_state.moves:
        last_point = game_state.moves[-1].point

    for pt, player in game_state.board.stones():
        x, y = _coord(pt)
        fill = BLACK_STONE if player is Player.BLACK else WHITE_STONE
        stroke = "none" if player is Player.BLACK else WHITE_STROKE
        parts.append(
            f'<circle cx="{x}" cy="{y}" r="{STONE_RADIUS}" '
            f'fill="{fill}" stroke="{stroke}" stroke-width="1.5"/>'
        )
        if highlight_last and pt == last_point:
            marker_color = WHITE_STONE if player is Player.BLACK else BLACK_STONE
            parts.append(
                f'<circle cx="{x}" cy="{y}" r="5" '
                f'fill="{marker_color}" opacity="0.7" class="last-move"/>'
            )

    if hint is not None and game_state.board.is_on_grid(hint) and game_state.board.is_empty(hint):
        x, y = _coord(hint)
        parts.append(
            f'<circle cx="{x}" cy="{y}" r="{STONE_RADIUS - 4}" fill="none" '
            f'stroke="{HINT_COLOR}" stroke-width="2" stroke-dasharray="4 3" class="hint"/>'
        )

    # Clickable intersection targets (invisible circles)
    if clickable and not game_state.is_over:
        for pt in game_state.legal_moves():
            x, y = _coord(pt)
            coord_str = format_point(pt)
            parts.append(
                f'<circle cx="{x}" cy="{y}" r="{CLICK_RADIUS}" '
                f'fill="transparent" class="board-click" '
                f'data-coord="{coord_str}" style="cursor:pointer">'
                f'<title>{coord_str}</title></circle>'
            )

    if game_over_message:
        mid = BOARD_PX // 2
        parts.append(
            f'<rect x="0" y="{mid - 30}" width="{BOARD_PX}" height="60" fill="{BANNER_BG}"/>'
        )
        parts.append(
            f'<text x="{mid}" y="{mid + 10}" text-anchor="middle" font-size="30" '
            f'font-family="sans-serif" fill="#FFF" class="game-over">{game_over_message}</text>'
        )

    parts.append("</svg>")
    return "\n".join(parts)


# JavaScript that handles clicks on the SVG and writes the coordinate to
# a hidden Gradio Textbox, then triggers the submit button.
CLICK_JS = """
() => {
    if (window._gomokuClickBound) return;
    window._gomokuClickBound = true;

    document.addEventListener('click', function(e) {
        const circle = e.target.closest('.board-click');
        if (!circle) return;
        const coord = circle.getAttribute('data-coord');
        if (!coord) return;

        const container = document.querySelector('#coord-input textarea, #coord-input input');
        if (!container) return;
        // Native setter so Gradio notices the change
        const proto = container.tagName === 'TEXTAREA'
            ? window.HTMLTextAreaElement.prototype
            : window.HTMLInputElement.prototype;
        const setter = Object.getOwnPropertyDescriptor(proto, 'value')?.set;
        if (setter) {
            setter.call(container, coord);
        } else {
            container.value = coord;
        }
        container.dispatchEvent(new Event('input', { bubbles: true }));
        const btn = document.querySelector('#coord-submit');
        if (btn) btn.click();
    });
}
"""
