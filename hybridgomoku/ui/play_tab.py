"""Play tab: Human vs the hybrid engine with interactive SVG board."""

from __future__ import annotations

import logging
import random as _random
from dataclasses import dataclass, field
from typing import Callable, Optional

import gradio as gr

from hybridgomoku.agent.assistant import HintAssistant, HintLevel, HintResult
from hybridgomoku.agent.difficulty import Difficulty
from hybridgomoku.agent.hybrid import HybridAgent, HybridOrchestrator
from hybridgomoku.agent.types import Candidate
from hybridgomoku.errors import HintUnavailableError
from hybridgomoku.game.board import GomokuGameState, format_point, parse_coordinate
from hybridgomoku.game.types import Player, Point
from hybridgomoku.ui.board_component import render_board_svg

logger = logging.getLogger(__name__)

DIFFICULTY_CHOICES = {
    "Elementary": Difficulty.ELEMENTARY,
    "College": Difficulty.COLLEGE,
    "Master": Difficulty.MASTER,
}

HINT_CHOICES = {
    "Quick (10)": HintLevel.QUICK,
    "Standard (30)": HintLevel.STANDARD,
    "Deep (50)": HintLevel.DEEP,
}


@dataclass
class GameSession:
    """Per-tab game state held in gr.State."""

    game: GomokuGameState = field(default_factory=GomokuGameState)
    agent: HybridAgent = field(default_factory=HybridAgent)
    human_player: Player = field(default=Player.BLACK)
    last_decision: Optional[Candidate] = None
    assistant: HintAssistant = field(default_factory=HintAssistant)
    hint: Optional[HintResult] = None

    def reset(
        self,
        human_player: Optional[Player] = None,
        difficulty: Optional[Difficulty] = None,
    ) -> None:
        self.game = GomokuGameState()
        self.last_decision = None
        self.hint = None
        if human_player is not None:
            self.human_player = human_player
        if difficulty is not None:
            self.agent.difficulty = difficulty
        self.agent.new_game()
        self.assistant.reset(self.agent.difficulty)

    def record_move(self, point: Point) -> None:
        self.game.apply_move(point)
        self.assistant.step()
        self.hint = None

    @property
    def game_over_banner(self) -> str:
        """Short text for the SVG overlay banner. Empty if game is not over."""
        g = self.game
        if not g.is_over:
            return ""
        if g.winner is not None:
            if g.winner == self.human_player:
                return "You win!"
            return "AI wins!"
        return "Draw!"

    @property
    def status_text(self) -> str:
        g = self.game
        if g.is_over:
            if g.winner is not None:
                who = "You win!" if g.winner == self.human_player else "AI wins!"
                return f"Game over: {who} ({g.winner})"
            return "Game over: Draw!"
        if g.current_player == self.human_player:
            return f"Your turn ({g.current_player})"
        return f"AI is thinking... ({g.current_player})"

    @property
    def decision_text(self) -> str:
        """Rationale, confidence and remote health of the engine's last move."""
        level = self.agent.orchestrator.breaker.level.value
        d = self.last_decision
        if d is None:
            return f"Engine: {self.agent.difficulty.value} | remote: {level}"
        lines = [
            f"**{format_point(d.point)}** ({d.category.value}, confidence {d.confidence:.2f})",
            d.rationale,
            f"Engine: {self.agent.difficulty.value} | remote: {level}",
        ]
        if d.alternatives:
            alts = ", ".join(format_point(p) for p in d.alternatives)
            lines.append(f"Alternatives: {alts}")
        return "\n\n".join(lines)

    @property
    def hint_text(self) -> str:
        a = self.assistant
        deep = f"in {a.deep_cooldown} moves" if a.deep_cooldown else "ready"
        lines = [f"Energy: {a.energy}/{a.max_energy} | deep hint: {deep}"]
        if self.hint is not None:
            ev = self.hint.evaluation
            lines += [f"{format_point(s.point)}: {s.reason}" for s in self.hint.suggestions]
            if ev.threat:
                lines.append(f"**{ev.threat}**")
        return "\n\n".join(lines)

    @property
    def move_history_table(self) -> list[list[str]]:
        return [
            [str(i + 1), str(move.player), format_point(move.point)]
            for i, move in enumerate(self.game.moves)
        ]


def _make_board_html(session: GameSession) -> str:
    clickable = (
        not session.game.is_over
        and session.game.current_player == session.human_player
    )
    hint = None
    if session.hint is not None:
        hint = session.hint.best
    elif session.last_decision is not None and session.last_decision.alternatives:
        hint = session.last_decision.alternatives[0]
    return render_board_svg(
        session.game,
        clickable=clickable,
        game_over_message=session.game_over_banner,
        hint=hint,
    )


def _outputs(session: GameSession, status: Optional[str] = None):
    return (
        _make_board_html(session),
        status or session.status_text,
        session.move_history_table,
        session.decision_text,
        session.hint_text,
        session,
    )


async def _ai_turn(session: GameSession) -> None:
    """Let the engine play one move if it is its turn."""
    g = session.game
    if g.is_over or g.current_player == session.human_player:
        return
    decision = await session.agent.select_move(g)
    session.record_move(decision.point)
    session.last_decision = decision


async def _apply_human_move(coord_text: str, session: GameSession):
    """Process a human move, then let the AI respond."""
    if session.game.is_over:
        return _outputs(session) + ("",)

    if session.game.current_player != session.human_player:
        return _outputs(session, "Wait, it's the AI's turn.") + ("",)

    point = parse_coordinate(coord_text)
    if point is None:
        return _outputs(
            session, f"Invalid coordinate: '{coord_text}'. Use format like H8."
        ) + ("",)

    if not session.game.board.is_empty(point):
        return _outputs(session, f"{format_point(point)} is already occupied.") + ("",)

    session.record_move(point)
    await _ai_turn(session)
    return _outputs(session) + ("",)


async def _new_game_with_color(color_choice: str, difficulty_choice: str, session: GameSession):
    """Start a new game. color_choice is 'Black', 'White', or 'Random'."""
    if color_choice == "Random":
        human = _random.choice([Player.BLACK, Player.WHITE])
    elif color_choice == "White":
        human = Player.WHITE
    else:
        human = Player.BLACK

    difficulty = DIFFICULTY_CHOICES.get(difficulty_choice, Difficulty.COLLEGE)
    session.reset(human_player=human, difficulty=difficulty)
    logger.info("New game: human plays %s against %s", human, session.agent.name)

    # If human is White, AI (Black) plays first
    await _ai_turn(session)

    assigned = "Black" if human is Player.BLACK else "White"
    return _outputs(session) + (f"You are {assigned}.",)


def _undo_move(session: GameSession):
    """Undo the last move pair (AI + human)."""
    if not session.game.moves:
        return _outputs(session, "Nothing to undo.")

    # If the last move was AI's, undo both AI and human
    last = session.game.moves[-1]
    if last.player != session.human_player:
        session.game.undo_move()
    if session.game.moves:
        session.game.undo_move()
    session.last_decision = None
    session.hint = None
    return _outputs(session)


def _request_hint(level_choice: str, session: GameSession):
    """Ask the assistant for a hint on the human's move."""
    g = session.game
    if g.is_over or g.current_player != session.human_player:
        return _outputs(session, "Hints are only available on your turn.")
    level = HINT_CHOICES.get(level_choice, HintLevel.STANDARD)
    try:
        session.hint = session.assistant.hint(g.board, g.current_player, level)
    except HintUnavailableError as e:
        return _outputs(session, f"No hint: {e.message}.")
    return _outputs(session)


def _resign(session: GameSession):
    if not session.game.is_over:
        session.game.resign(session.human_player)
    return _outputs(session)


def build_play_tab(
    make_orchestrator: Callable[[], HybridOrchestrator] = HybridOrchestrator,
    difficulty: Difficulty = Difficulty.COLLEGE,
) -> None:
    """Construct the Play tab UI inside a gr.Blocks context.

    Each browser session gets its own orchestrator from `make_orchestrator`.
    """

    def _session(session: Optional[GameSession]) -> GameSession:
        if session is None:
            session = GameSession(
                agent=HybridAgent(make_orchestrator(), difficulty),
                assistant=HintAssistant(difficulty),
            )
        return session

    async def on_move(coord_text, session):
        return await _apply_human_move(coord_text, _session(session))

    async def on_new_game(color_choice, difficulty_choice, session):
        return await _new_game_with_color(color_choice, difficulty_choice, _session(session))

    def on_undo(session):
        return _undo_move(_session(session))

    def on_hint(level_choice, session):
        return _request_hint(level_choice, _session(session))

    def on_resign(session):
        return _resign(_session(session))

    # Sessions are created lazily so orchestrators are never deep-copied
    session_state = gr.State(None)
    default_label = next(k for k, v in DIFFICULTY_CHOICES.items() if v is difficulty)

    with gr.Row():
        # Left: board
        with gr.Column(scale=3):
            board_html = gr.HTML(
                value=render_board_svg(GomokuGameState()),
                label="Board",
            )
        # Right: controls
        with gr.Column(scale=1):
            status_text = gr.Textbox(
                value="Your turn (Black)",
                label="Status",
                interactive=False,
                lines=2,
            )
            color_info = gr.Textbox(
                value="You are Black.",
                label="Color",
                interactive=False,
                lines=1,
            )

            gr.Markdown("### New Game")
            color_choice = gr.Radio(
                choices=["Random", "Black", "White"],
                value="Random",
                label="Play as",
            )
            difficulty_choice = gr.Radio(
                choices=list(DIFFICULTY_CHOICES.keys()),
                value=default_label,
                label="Difficulty",
            )
            new_game_btn = gr.Button("New Game", variant="primary")

            with gr.Row():
                undo_btn = gr.Button("Undo")
                resign_btn = gr.Button("Resign", variant="stop")

            gr.Markdown("### Enter Move")
            coord_input = gr.Textbox(
                label="Coordinate (e.g. H8)",
                placeholder="H8",
                elem_id="coord-input",
                lines=1,
            )
            coord_submit = gr.Button(
                "Submit Move",
                elem_id="coord-submit",
            )

            gr.Markdown("### Hint")
            hint_choice = gr.Radio(
                choices=list(HINT_CHOICES.keys()),
                value="Quick (10)",
                label="Hint level (energy)",
            )
            hint_btn = gr.Button("Get Hint")
            hint_md = gr.Markdown("")

            gr.Markdown("### Engine")
            decision_md = gr.Markdown("")

            gr.Markdown("### Move History")
            move_table = gr.Dataframe(
                headers=["#", "Player", "Move"],
                datatype=["number", "str", "str"],
                interactive=False,
                column_count=3,
            )

    # Outputs shared by most callbacks
    board_outputs = [board_html, status_text, move_table, decision_md, hint_md, session_state]

    coord_submit.click(
        fn=on_move,
        inputs=[coord_input, session_state],
        outputs=board_outputs + [coord_input],
    )

    new_game_btn.click(
        fn=on_new_game,
        inputs=[color_choice, difficulty_choice, session_state],
        outputs=board_outputs + [color_info],
    )

    undo_btn.click(
        fn=on_undo,
        inputs=[session_state],
        outputs=board_outputs,
    )

    resign_btn.click(
        fn=on_resign,
        inputs=[session_state],
        outputs=board_outputs,
    )

    hint_btn.click(
        fn=on_hint,
        inputs=[hint_choice, session_state],
        outputs=board_outputs,
    )
