from dataclasses import field

from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class ReleaseNote:
    tag_name: str
    name: str = ""
    body: str = ""


@dataclass(frozen=True)
class Bump:
    name: str
    from_version: str
    to_version: str
    releases: list[ReleaseNote] = field(default_factory=list)

    def release_notes_text(self) -> str:
        bodies = [r.body.strip() for r in self.releases if r.body and r.body.strip()]
        return "\n".join(bodies).strip()
