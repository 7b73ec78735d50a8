from __future__ import annotations

import logging
import os

import streamlit as st

from corpus.position_corpus import PositionCorpus
from quiz.config import get_settings
from quiz.errors import CorpusLoadError
from ui.quiz_ui import render_quiz_page

BASE_DIR = os.path.dirname(__file__)

logging.basicConfig(
    level=os.getenv("COUNT_QUIZ_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _resolve_source(source: str) -> str:
    """Relative file paths are taken from the app directory."""
    if source.startswith(("http://", "https://")) or os.path.isabs(source):
        return source
    return os.path.join(BASE_DIR, source)


@st.cache_resource(show_spinner="Loading games...")
def load_corpus(games_source: str, weights_source: str, timeout: float) -> PositionCorpus:
    return PositionCorpus.load(games_source, weights_source, timeout=timeout)


def main() -> None:
    st.set_page_config(page_title="Chess Count Quiz", layout="wide")
    st.title("Chess Count Quiz")
    st.caption("Count the legal moves, checks and captures for both sides.")

    settings = get_settings()
    try:
        corpus = load_corpus(
            _resolve_source(settings.games_source),
            _resolve_source(settings.weights_source),
            settings.request_timeout,
        )
    except CorpusLoadError as e:
        logger.error("Corpus load failed: %s", e)
        st.error(f"Could not load the game corpus: {e}")
        st.stop()

    render_quiz_page(corpus, settings)


if __name__ == "__main__":
    main()
