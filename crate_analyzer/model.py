from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ModuleType(str, Enum):
	BINARY = "binary"
	LIBRARY = "library"
	TEST = "test"
	EXAMPLE = "example"
	BENCHMARK = "benchmark"
	NORMAL = "normal"


class ItemType(str, Enum):
	FUNCTION = "function"
	STRUCT = "struct"
	ENUM = "enum"
	TRAIT = "trait"
	IMPL = "impl"
	CONST = "const"
	STATIC = "static"
	TYPE_ALIAS = "type_alias"


class Visibility(str, Enum):
	PUBLIC = "public"
	PRIVATE = "private"


class RelationType(str, Enum):
	DECLARES = "declares"
	USES = "uses"


class DependencyType(str, Enum):
	NORMAL = "normal"
	DEV = "dev"
	BUILD = "build"


ENTRY_TYPES = (ModuleType.BINARY, ModuleType.LIBRARY)


class Item(BaseModel):
	model_config = ConfigDict(frozen=True)

	name: str
	item_type: ItemType
	visibility: Visibility


class Module(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: str
	name: str
	path: str
	module_type: ModuleType
	visibility: Visibility
	items: List[Item] = []


class Relationship(BaseModel):
	# "from" is a keyword, the wire name is kept through the alias
	model_config = ConfigDict(frozen=True, populate_by_name=True, serialize_by_alias=True)

	from_: str = Field(alias="from")
	to: str
	rel_type: RelationType


class Dependency(BaseModel):
	model_config = ConfigDict(frozen=True)

	name: str
	version: str
	dep_type: DependencyType


class ProjectStructure(BaseModel):
	model_config = ConfigDict(frozen=True)

	root_path: str
	modules: List[Module] = []
	dependencies: List[Dependency] = []
	relationships: List[Relationship] = []


class ModuleMetrics(BaseModel):
	lines_of_code: int
	incoming_deps: int
	outgoing_deps: int
	complexity_score: int


class ProjectProblems(BaseModel):
	cycles: List[List[str]] = []
	unused_modules: List[str] = []
	large_modules: List[str] = []
	highly_coupled: List[str] = []
