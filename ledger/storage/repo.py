from __future__ import annotations

import glob
import json
import logging
import os
import shutil
import tempfile
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ledger.errors import SnapshotIntegrityError

logger = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


class SnapshotRepository:
    """
    Stockage JSON d'un instantané complet (un seul fichier).
    - Rotation de backups (backup_enabled, backup_keep)
    - N'écrit pas si le contenu ne change pas (réduction du bruit et des .bak)
    - N'écrit pas une révision plus ancienne que celle déjà stockée
    - Écriture atomique (fichier temporaire + os.replace)
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self._lock = threading.Lock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    # ---------------- I/O bas niveau ---------------- #

    def exists(self) -> bool:
        return self.filepath.exists()

    def load(self) -> Optional[Dict[str, Any]]:
        """Retourne le dict stocké, None si absent ; fichier corrompu -> copie .corrupt.json + erreur."""
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            backup = self.filepath.with_suffix(".corrupt.json")
            shutil.copy2(self.filepath, backup)
            logger.error("Corrupt snapshot %s copied to %s", self.filepath, backup)
            raise SnapshotIntegrityError([f"invalid JSON in {self.filepath.name}: {e}"]) from e
        if not isinstance(data, dict):
            raise SnapshotIntegrityError([f"{self.filepath.name} does not hold a JSON object"])
        return data

    def stored_revision(self) -> int:
        if not self.exists():
            return -1
        try:
            data = json.loads(self.filepath.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return -1
        return int(data.get("revision", -1)) if isinstance(data, dict) else -1

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        # garde les plus récents
        if len(files) > self.backup_keep:
            for old in files[: len(files) - self.backup_keep]:
                try:
                    Path(old).unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Could not remove old backup %s: %s", old, e)

    def _backup(self) -> None:
        if not (self.backup_enabled and self.filepath.exists()):
            return
        ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        backup = self.filepath.with_suffix(f".{ts}.bak.json")
        try:
            shutil.copy2(self.filepath, backup)
        except OSError as e:
            logger.warning("Could not back up %s: %s", self.filepath, e)
            return
        self._rotate_backups()

    def save(self, data: Dict[str, Any]) -> bool:
        """
        Écrit l'instantané. Retourne False quand rien n'a été écrit
        (contenu identique ou révision déjà stockée).
        """
        with self._lock:
            revision = int(data.get("revision", 0))
            if revision < self.stored_revision():
                logger.debug("Skip write of revision %d (stored is newer)", revision)
                return False

            new_dump = json.dumps(data, ensure_ascii=False, indent=2, default=_json_default)

            # si contenu identique → ne rien faire
            if self.filepath.exists() and self.filepath.read_text(encoding="utf-8") == new_dump:
                return False

            self._backup()

            fd, tmp = tempfile.mkstemp(prefix=self.filepath.name, suffix=".tmp", dir=str(self.filepath.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(new_dump)
                os.replace(tmp, self.filepath)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            return True
