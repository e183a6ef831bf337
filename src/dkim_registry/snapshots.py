"""JSON snapshot exports. Each file is written in full to a temp file, then swapped in."""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

KEYS_FILE = "domain-dkim-keys.json"
CHUNKED_FILE = "domain-dkim-keys-chunked.json"
HASHES_FILE = "domain-dkim-key-hashes.json"


class SnapshotWriter:
    """Big integers are written as decimal strings so JSON consumers never lose precision."""

    def __init__(self, out_dir: Union[str, Path]):
        self._out_dir = Path(out_dir)

    def write_keys(self, keys: dict) -> Path:
        return self._write(KEYS_FILE, {d: [str(n) for n in moduli] for d, moduli in keys.items()})

    def write_chunked(self, chunked: dict) -> Path:
        data = {
            d: [[str(limb) for limb in enc.limbs] for enc in encodings]
            for d, encodings in chunked.items()
        }
        return self._write(CHUNKED_FILE, data)

    def write_commitments(self, commitments: dict) -> Path:
        return self._write(HASHES_FILE, {d: [str(h) for h in hashes] for d, hashes in commitments.items()})

    def write_all(self, result) -> list:
        return [
            self.write_keys(result.keys),
            self.write_chunked(result.chunked),
            self.write_commitments(result.commitments),
        ]

    def _write(self, name: str, data: dict) -> Path:
        self._out_dir.mkdir(parents=True, exist_ok=True)
        target = self._out_dir / name
        fd, tmp_path = tempfile.mkstemp(dir=self._out_dir, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, target)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        return target
