from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# --- Chemins de base ---
ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.environ.get("LEDGER_DATA_DIR") or ROOT_DIR / "data")
SETTINGS_JSON = "settings.json"
LEDGER_JSON = "ledger.json"


class NumberingSettings(BaseModel):
    invoice_prefix: str = "INV-"
    quote_prefix: str = "QT-"
    purchase_order_prefix: str = "PO-"
    challan_prefix: str = "DCH-"
    credit_note_prefix: str = "CN-"


class StorageSettings(BaseModel):
    backup_enabled: bool = True
    backup_keep: int = Field(default=5, ge=0)
    persist_retries: int = Field(default=3, ge=1)


class Settings(BaseModel):
    numbering: NumberingSettings = Field(default_factory=NumberingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    payment_terms_days: int = Field(default=30, ge=0)
    # soldes d'ouverture des comptes système (id -> centimes)
    opening_balances: Dict[str, int] = Field(default_factory=dict)


def load_settings(data_dir: Optional[Union[str, Path]] = None) -> Settings:
    """
    Lit <data_dir>/settings.json.
    Fichier absent -> valeurs par défaut ; JSON illisible ou invalide -> erreur levée.
    """
    base = Path(data_dir) if data_dir else DATA_DIR
    path = base / SETTINGS_JSON
    if not path.exists():
        logger.debug("No settings file at %s, using defaults", path)
        return Settings()
    data = json.loads(path.read_text(encoding="utf-8"))
    return Settings.model_validate(data or {})
