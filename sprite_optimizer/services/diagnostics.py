"""Интерфейс отчётов о некритичных сбоях.

Сервисы не пишут предупреждения напрямую: они отдают `Diagnostic`
в переданный `reporter`, а вызывающий код решает, показать событие или скрыть.
"""
from __future__ import annotations

import logging
from typing import Callable, List

from sprite_optimizer.models.diagnostic_model import Diagnostic

logger = logging.getLogger(__name__)

Reporter = Callable[[Diagnostic], None]


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Репортер по умолчанию: пишет событие в лог с уровнем WARNING."""
    logger.warning("[%s] %s: %s", diagnostic.kind.value, diagnostic.subject, diagnostic.message)


class DiagnosticCollector:
    """Репортер, который накапливает события в списке.

    Может пробросить события дальше (`forward`), например в `log_diagnostic`.
    """
    def __init__(self, forward: Reporter | None = None) -> None:
        self.events: List[Diagnostic] = []
        self._forward = forward

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.events.append(diagnostic)
        if self._forward is not None:
            self._forward(diagnostic)

    def subjects(self) -> List[str]:
        return [event.subject for event in self.events]
