"""Export/import of the whole storage as a single copy-pasteable code.

The code is base64(JSON(object mapping every stored key to its raw string
value)). Unknown keys are carried through untouched, so a code produced by
a newer version still restores everything on an older one.
"""

import base64
import binascii
import json
import logging
from typing import Dict, List

from pocketbook.storage import Storage

logger = logging.getLogger(__name__)


class InvalidBackupCode(ValueError):
    """The import code is not base64-encoded JSON of a string-to-string object."""


def export_code(storage: Storage) -> str:
    snapshot = storage.items()
    # ASCII-only JSON keeps the code decodable by plain atob/b64decode
    text = json.dumps(snapshot, ensure_ascii=True, separators=(",", ":"))
    code = base64.b64encode(text.encode("ascii")).decode("ascii")
    logger.info("Exported %d keys", len(snapshot))
    return code


def decode_code(code: str) -> Dict[str, str]:
    """Fully decode and validate an import code without touching storage."""
    if not isinstance(code, str):
        raise InvalidBackupCode("import code must be text")
    compact = "".join(code.split())
    if not compact:
        raise InvalidBackupCode("import code is empty")
    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidBackupCode(f"not valid base64: {exc}") from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        # btoa-made codes carry one Latin-1 byte per character
        text = raw.decode("latin-1")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidBackupCode(f"not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidBackupCode(f"expected a JSON object, got {type(data).__name__}")
    for key, value in data.items():
        if value is not None and not isinstance(value, str):
            raise InvalidBackupCode(f"value for {key!r} is not a string")
    return data


def import_code(storage: Storage, code: str) -> List[str]:
    """Overwrite storage with every non-empty entry of ``code``.

    Keys missing from the code, or present with an empty value, are left as
    they are. Nothing is written unless the whole code decodes. If a write
    fails part-way, the keys written so far are put back to their previous
    values before the error propagates.
    """
    data = decode_code(code)
    previous: Dict[str, object] = {}
    written: List[str] = []
    try:
        for key, value in data.items():
            if not value:
                continue
            previous[key] = storage.get(key)
            written.append(key)
            storage.set(key, value)
    except Exception:
        logger.error("Import failed at key %d of %d, rolling back", len(written), len(data))
        for key in reversed(written):
            old = previous[key]
            if old is None:
                storage.remove(key)
            else:
                storage.set(key, old)
        raise
    logger.info("Imported %d keys", len(written))
    return written


def reset_storage(storage: Storage, confirmed: bool) -> bool:
    """Erase all stored data; does nothing unless ``confirmed`` is true."""
    if not confirmed:
        return False
    count = len(storage.keys())
    storage.clear()
    logger.info("Storage reset, %d keys removed", count)
    return True
