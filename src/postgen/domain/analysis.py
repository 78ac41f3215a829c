from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Param:
    name: str
    type: str


@dataclass(frozen=True)
class StructField:
    name: str
    type: str
    json_key: str
    required: bool = True


@dataclass
class StructDefinition:
    name: str
    package: str
    file: str
    exported: bool
    fields: list[StructField] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MethodSignature:
    name: str
    params: tuple[Param, ...] = ()
    returns: tuple[Param, ...] = ()


@dataclass
class InterfaceDefinition:
    name: str
    package: str
    file: str
    exported: bool
    methods: list[MethodSignature] = field(default_factory=list)


@dataclass
class FunctionInfo:
    name: str
    package: str
    file: str
    exported: bool
    params: list[Param] = field(default_factory=list)
    returns: list[Param] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    is_method: bool = False
    receiver: Optional[Param] = None


@dataclass(frozen=True)
class TypeDefinition:
    """A named type that is neither a struct nor an interface."""

    name: str
    underlying: str
    package: str
    file: str
    exported: bool


@dataclass
class PackageInfo:
    name: str
    path: str
    files: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    is_main: bool = False
    has_tests: bool = False


@dataclass(frozen=True)
class ArchitecturePattern:
    kind: str = "unknown"  # clean | mvc | layered | microservice | unknown
    confidence: float = 0.0
    layers: tuple[str, ...] = ()
    dto_patterns: tuple[str, ...] = ()


@dataclass
class ProjectAnalysis:
    """
    Whole-tree index built once per scan.

    Mappings are keyed by "package.Name" (packages by package name); on a
    duplicate qualified name the last file indexed wins.
    """

    structs: dict[str, StructDefinition] = field(default_factory=dict)
    interfaces: dict[str, InterfaceDefinition] = field(default_factory=dict)
    functions: dict[str, FunctionInfo] = field(default_factory=dict)
    types: dict[str, TypeDefinition] = field(default_factory=dict)
    packages: dict[str, PackageInfo] = field(default_factory=dict)
    module_name: str = ""
    architecture: ArchitecturePattern = field(default_factory=ArchitecturePattern)

    def find_struct(self, name: str) -> Optional[StructDefinition]:
        """Look a struct up by bare name (first in index order)."""
        for sd in self.structs.values():
            if sd.name == name:
                return sd
        return None
