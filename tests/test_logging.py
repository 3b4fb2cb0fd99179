import logging

from chat_relay.core import logging as app_logging
from chat_relay.core.config import settings


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []

    def emit(self, record):
        self.lines.append(record.getMessage())


def capture(fn):
    handler = ListHandler()
    app_logging.logger.addHandler(handler)
    try:
        fn()
    finally:
        app_logging.logger.removeHandler(handler)
    return handler.lines


def test_startup_summary_includes_retrieval_details(monkeypatch):
    monkeypatch.setattr(settings, "RAG_ENABLED", True)
    monkeypatch.setattr(settings, "CHROMA_COLLECTION_NAME", "finance-docs")

    lines = capture(app_logging.log_startup_info)

    retrieval = [line for line in lines if "retrieval:" in line]
    assert len(retrieval) == 1
    assert "collection=finance-docs" in retrieval[0]
    assert f"top_k={settings.RETRIEVAL_TOP_K}" in retrieval[0]


def test_startup_summary_without_retrieval(monkeypatch):
    monkeypatch.setattr(settings, "RAG_ENABLED", False)

    lines = capture(app_logging.log_startup_info)

    assert any(line.strip() == "retrieval: off" for line in lines)
    assert any(f"{settings.LLM_TYPE}/{settings.LLM_MODEL_NAME}" in line for line in lines)


def test_module_loggers_are_children_of_app_logger():
    assert app_logging.get_logger("chat_relay.main").parent is app_logging.logger
