"""Domain models for protocol templates."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProtocolPeptide:
    """A single substance entry inside a protocol template."""

    name: str
    dose: str
    timing: str
    route: str | None = None


@dataclass(frozen=True)
class ProtocolTemplate:
    """A named bundle of peptides used to batch-create cycles."""

    id: str
    name: str
    duration: str
    peptides: list[ProtocolPeptide]
