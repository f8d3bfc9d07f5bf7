from pydantic import ConfigDict
from pydantic.dataclasses import dataclass


@dataclass(frozen=True, config=ConfigDict(coerce_numbers_to_str=True))
class Stemcell:
    os: str = ""
    version: str = ""
