from __future__ import annotations
from typing import Iterable, Optional


def next_document_number(numbers: Iterable[Optional[str]], prefix: str) -> str:
    """
    Numéro suivant pour un préfixe donné : max des suffixes numériques + 1, sur 4 chiffres.
    Ex: ["INV-0003", "INV-0007", "X-9"] + "INV-" -> "INV-0008"
    """
    max_num = 0
    for num in numbers:
        if not num or not num.startswith(prefix):
            continue
        tail = num[len(prefix):]
        if tail.isdigit():
            max_num = max(max_num, int(tail))
    return f"{prefix}{max_num + 1:04d}"
