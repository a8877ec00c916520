# quizlab/core/logging_config.py
"""
Logging structuré (JSON sur stdout) pour l'API.
Appelé une seule fois au démarrage (main.py). L'engine ne logge jamais.
"""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter


class QuizlabJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = record.created
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        log_record["module"] = record.module
        log_record["lineno"] = record.lineno


def setup_logging(log_level_str: str = "INFO", json_output: bool = True) -> None:
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Idempotent : pas de handler dupliqué si appelé deux fois (reload, tests)
    if any(getattr(h, "_quizlab", False) for h in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(QuizlabJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler._quizlab = True
    root_logger.addHandler(handler)
    root_logger.info("Logging configuré (niveau %s)", logging.getLevelName(log_level))
