import json
import os
from dataclasses import dataclass, asdict

CONFIG_PATH = "config.json"

@dataclass
class BridgeConfig:
    # The image geometry is fixed by the watch screen and lives in bitmap.py.
    storage_path: str = "storage.json"
    data_key: str = "image_data"
    status_key: str = "image_status"
    export_dir: str = "exports"

    def save(self, path: str = CONFIG_PATH) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(asdict(self), fh, indent=2)

    @classmethod
    def load(cls, path: str = CONFIG_PATH) -> "BridgeConfig":
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            valid = {k: v for k, v in data.items() if k in cls.__annotations__}
            return cls(**valid)
        return cls()
