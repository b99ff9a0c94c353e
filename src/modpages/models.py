from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class Artifact:
    """Rendered page bytes plus the time they were produced."""

    payload: bytes
    created_at: datetime

    def reader(self) -> io.BytesIO:
        return io.BytesIO(self.payload)


@dataclass(slots=True)
class Value:
    names: List[str]
    decl: str
    doc: str = ""


@dataclass(slots=True)
class Func:
    name: str
    decl: str
    doc: str = ""
    recv: Optional[str] = None


@dataclass(slots=True)
class Type:
    name: str
    decl: str
    doc: str = ""
    constants: List[Value] = field(default_factory=list)
    variables: List[Value] = field(default_factory=list)
    functions: List[Func] = field(default_factory=list)
    methods: List[Func] = field(default_factory=list)


@dataclass(slots=True)
class Package:
    name: str
    import_path: str
    doc: str = ""
    filename: Optional[str] = None
    constants: List[Value] = field(default_factory=list)
    variables: List[Value] = field(default_factory=list)
    functions: List[Func] = field(default_factory=list)
    types: List[Type] = field(default_factory=list)
    subpackages: List[str] = field(default_factory=list)

    @property
    def synopsis(self) -> str:
        text = " ".join(self.doc.split())
        if not text:
            return ""
        end = text.find(". ")
        return text if end == -1 else text[: end + 1]
