"""HybridGomoku: Gradio web app entry point."""

import logging

import gradio as gr

from hybridgomoku.agent.hybrid import HybridOrchestrator
from hybridgomoku.config import Settings
from hybridgomoku.remote.providers import ProviderSelector, build_providers
from hybridgomoku.ui.board_component import CLICK_JS
from hybridgomoku.ui.play_tab import build_play_tab

settings = Settings.from_env()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# One provider table (and HTTP session) shared by every browser session
selector = (
    ProviderSelector(build_providers(settings), override_id=settings.provider_override)
    if settings.has_remote
    else None
)
if selector is None:
    logger.info("No API keys configured, the engine will play local-only")


def make_orchestrator() -> HybridOrchestrator:
    return HybridOrchestrator(selector, pacing=settings.pacing)


with gr.Blocks(title="HybridGomoku") as demo:
    gr.Markdown("# HybridGomoku")
    gr.Markdown(
        "15x15 Gomoku, 5 in a row to win. A local pattern engine, an opening "
        "book and optional remote advice decide each move."
    )

    with gr.Tab("Play"):
        build_play_tab(make_orchestrator, settings.difficulty)

    # Bind board click handler JS on page load
    demo.load(fn=None, js=CLICK_JS)

if __name__ == "__main__":
    demo.launch(theme=gr.themes.Soft())
