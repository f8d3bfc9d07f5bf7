import os
from dataclasses import asdict

from ruamel.yaml import YAML

from tilefetch.models import ComponentLock, Lockfile
from tilefetch.utils.yaml_loader import get_yaml_instance

# stemcell fields belong to the build, not to the lock entry
PERSISTED_LOCK_FIELDS = ("name", "sha1", "version", "remote_source", "remote_path")


class LockfileRepository:
    def __init__(self, file_path: str):
        self.file_path: str = file_path
        self.yaml: YAML = get_yaml_instance()

    def load(self) -> Lockfile:
        if not os.path.isfile(self.file_path):
            return Lockfile()
        with open(self.file_path, "r") as f:
            data = self.yaml.load(f) or {}
            try:
                return Lockfile(**data)
            except Exception as e:
                raise ValueError(f"Invalid {os.path.basename(self.file_path)} structure: {e}") from e

    def save(self, lockfile: Lockfile) -> bool:
        data = {"releases": [self._serialize(lock) for lock in lockfile.releases]}
        stemcell = {k: v for k, v in asdict(lockfile.stemcell_criteria).items() if v}
        if stemcell:
            data["stemcell_criteria"] = stemcell
        try:
            with open(self.file_path, "w") as f:
                self.yaml.dump(data, f)
            return True
        except Exception as e:
            raise Exception(f"Error writing {self.file_path}: {e}") from e

    @staticmethod
    def _serialize(lock: ComponentLock) -> dict[str, str]:
        entry = asdict(lock)
        return {key: entry[key] for key in PERSISTED_LOCK_FIELDS if entry.get(key)}
