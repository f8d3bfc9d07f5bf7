import os

from ruamel.yaml import YAML

from tilefetch.models import Specification
from tilefetch.utils.yaml_loader import get_yaml_instance


class SpecificationRepository:
    def __init__(self, file_path: str):
        self.file_path: str = file_path
        self.yaml: YAML = get_yaml_instance()

    def load(self) -> Specification:
        if not os.path.isfile(self.file_path):
            raise FileNotFoundError(f"specification file {self.file_path} not found")
        with open(self.file_path, "r") as f:
            data = self.yaml.load(f) or {}
            try:
                return Specification(**data)
            except Exception as e:
                raise ValueError(f"Invalid {os.path.basename(self.file_path)} structure: {e}") from e
