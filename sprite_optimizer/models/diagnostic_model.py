"""Диагностические события о некритичных сбоях конвейера."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DiagnosticKind(str, Enum):
    MISSING_SOURCE = "missing_source"
    DECODE_FAILURE = "decode_failure"
    SURFACE_FAILURE = "surface_failure"
    DUPLICATE_ENTRY = "duplicate_entry"


@dataclass(frozen=True)
class Diagnostic:
    """Событие о локально обработанном сбое.

    Fields:
        kind: Категория сбоя.
        subject: Имя страницы, региона или файла, к которому относится событие.
        message: Человекочитаемое описание.
        affected: Сколько элементов пропущено из-за сбоя (для страниц — число регионов).
    """
    kind: DiagnosticKind
    subject: str
    message: str
    affected: int = 1
