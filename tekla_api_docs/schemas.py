"""
Pydantic schemas for the Tekla Open API documentation index.

Persisted dataset files use the camelCase keys of the original parsed-api
layout (``type``, ``level``, ``htmlFile``, ``normalizedNamespace``,
``codeSnippets``...). Every model accepts either the alias or the Python field
name on input; write with ``model_dump(by_alias=True)``.

Architecture:
- TocEntry: one line of the help table of contents
- ApiRecord: one normalized documentation page (class, method, property...)
- DetailedInfo / MemberInfo: lazily parsed class-level breakdown
- CodeExample / CodeSnippet: curated sample programs
- SearchIndexEntry: denormalized projection used by the fuzzy index
- LocalResult / RemoteResult: tagged union of query answers, adapted to
  SearchResult / ApiRecord so callers never see which source answered
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from tekla_api_docs.utils.naming import canonical_namespace, symbol_name


# ============================================================================
# KINDS
# ============================================================================

ApiKind = Literal[
    "namespace",
    "class",
    "interface",
    "enum",
    "properties-collection",
    "methods-collection",
    "property",
    "method",
    "event",
    "field",
    "delegate",
    "other",
]

API_KINDS = (
    "namespace",
    "class",
    "interface",
    "enum",
    "properties-collection",
    "methods-collection",
    "property",
    "method",
    "event",
    "field",
    "delegate",
    "other",
)

# Kinds shown by a namespace "contents" view
TOP_LEVEL_KINDS = ("class", "interface", "enum", "delegate")


def coerce_kind(value: Optional[str]) -> str:
    """Map an arbitrary kind string onto the fixed enumeration ("other" if unknown)."""
    if value and value in API_KINDS:
        return value
    return "other"


# ============================================================================
# TABLE OF CONTENTS
# ============================================================================

class TocEntry(BaseModel):
    """One entry of the help navigation tree, in document order."""
    display_name: str = Field(alias="name", description="Raw label as authored in the TOC")
    target_page: str = Field("", alias="htmlFile", description="Relative page path, may be empty")
    depth: int = Field(0, alias="level", ge=0, description="Number of enclosing lists")
    kind: ApiKind = Field("other", alias="type", description="Kind guessed from the label")
    namespace: str = Field("", description="Namespace derived from the label, possibly empty")

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "Beam Class",
                "htmlFile": "T_Tekla_Structures_Model_Beam.htm",
                "level": 3,
                "type": "class",
                "namespace": ""
            }
        }


# ============================================================================
# DETAIL SCHEMAS
# ============================================================================

class MemberInfo(BaseModel):
    """One row of a constructors/properties/methods member table."""
    name: str = Field(description="Member name (link text of the second column)")
    description: str = Field("", description="Own description, inherited attribution removed")
    inherited: bool = Field(False, description="Whether the member is inherited")
    inherited_from: Optional[str] = Field(
        None,
        alias="inheritedFrom",
        description="Declaring ancestor when inherited"
    )

    class Config:
        populate_by_name = True


class DetailedInfo(BaseModel):
    """
    Class-level breakdown parsed on demand from a class page.

    Every list defaults to empty; a page without a given section is not an
    error. The inheritance chain is ordered root-to-self and never contains
    the universal root object type.
    """
    syntax_text: Optional[str] = Field(None, alias="syntax")
    inheritance_chain: List[str] = Field(default_factory=list, alias="inheritance")
    constructors: List[MemberInfo] = Field(default_factory=list)
    properties: List[MemberInfo] = Field(default_factory=list)
    methods: List[MemberInfo] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True


# ============================================================================
# API RECORDS
# ============================================================================

class ApiRecord(BaseModel):
    """
    One normalized documentation entry.

    ``title`` is never empty (the normalizer falls back to the TOC display
    name). An empty ``namespace`` means "namespace unknown" and is legal.
    ``members`` is only populated on answers of class lookups and is never
    written to disk.
    """
    title: str = Field(min_length=1, description="Page title, e.g. 'Beam Class'")
    description: str = Field("", description="Page description metadata")
    summary: str = Field("", description="Summary block text, else description, else empty")
    namespace: str = Field("", description="Dotted namespace, empty when unknown")
    normalized_namespace: str = Field("", alias="normalizedNamespace")
    kind: ApiKind = Field("other", alias="type")
    depth: int = Field(0, alias="level", ge=0)
    source_page: str = Field("", alias="htmlFile")
    detailed_info: Optional[DetailedInfo] = Field(None, alias="detailedInfo")
    members: List["ApiRecord"] = Field(default_factory=list, exclude=True)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "title": "Beam Class",
                "description": "The Beam class represents a beam in the model.",
                "summary": "Represents a beam.",
                "namespace": "Tekla.Structures.Model",
                "normalizedNamespace": "Tekla.Structures.Model",
                "type": "class",
                "level": 3,
                "htmlFile": "T_Tekla_Structures_Model_Beam.htm"
            }
        }

    @field_validator("kind", mode="before")
    @classmethod
    def known_kind(cls, value):
        return coerce_kind(value)

    @field_validator("title", "description", "summary", "namespace", "normalized_namespace",
                     "source_page", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return "" if value is None else value

    @property
    def identifier(self) -> str:
        """Bare symbol name: the title without its trailing kind word."""
        return symbol_name(self.title)

    def to_search_entry(self) -> "SearchIndexEntry":
        return SearchIndexEntry(
            title=self.title,
            kind=self.kind,
            namespace=self.namespace,
            summary=self.summary,
            description=self.description,
            source_page=self.source_page,
        )


class SearchIndexEntry(BaseModel):
    """Denormalized projection of an ApiRecord used only by the fuzzy index."""
    title: str
    kind: ApiKind = Field("other", alias="type")
    namespace: str = ""
    summary: str = ""
    description: str = ""
    source_page: str = Field("", alias="htmlFile")

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("kind", mode="before")
    @classmethod
    def known_kind(cls, value):
        return coerce_kind(value)

    @field_validator("namespace", "summary", "description", "source_page", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return "" if value is None else value


# ============================================================================
# CODE EXAMPLES
# ============================================================================

class CodeSnippet(BaseModel):
    """A code block lifted from an example's source files."""
    title: str = ""
    code: str
    language: str = "csharp"
    description: str = ""


class CodeExample(BaseModel):
    """
    One sample program from the examples collection.

    ``api_elements`` holds the API symbols the example references; the store
    keeps it deduplicated and restricted to names under the product root
    token.
    """
    name: str
    category: str = Field("", description="Path-like grouping, e.g. 'Model/Applications'")
    path: str = ""
    description: str = ""
    files: List[str] = Field(default_factory=list)
    code_snippets: List[CodeSnippet] = Field(default_factory=list, alias="codeSnippets")
    api_elements: List[str] = Field(default_factory=list, alias="apiElements")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "BeamCreation",
                "category": "Model/Applications",
                "path": "Model/Applications/BeamCreation",
                "description": "Creates a beam between two points.",
                "files": ["Form1.cs"],
                "codeSnippets": [
                    {
                        "title": "Form1.cs",
                        "code": "Beam beam = new Beam(start, end);\nbeam.Insert();",
                        "language": "csharp",
                        "description": "Beam insertion"
                    }
                ],
                "apiElements": ["Tekla.Structures.Model.Beam"]
            }
        }


class CodeExampleResult(BaseModel):
    """One entry of a code-example lookup: an example overview or one of its snippets."""
    title: str
    description: str = ""
    code: str = ""
    language: str = "text"
    entry_type: Literal["overview", "snippet"] = Field("snippet", alias="type")
    example: Optional[str] = None

    class Config:
        populate_by_name = True


# ============================================================================
# QUERY RESULTS
# ============================================================================

class SearchResult(BaseModel):
    """Single result shape of a search, whichever source answered."""
    title: str
    kind: ApiKind = Field("other", alias="type")
    namespace: str = ""
    summary: str = ""
    description: str = ""
    source_page: str = Field("", alias="htmlFile")

    class Config:
        populate_by_name = True


class RemoteApiResult(BaseModel):
    """What the remote documentation source answers."""
    title: str
    description: str = ""
    namespace: str = ""
    kind: str = Field("other", alias="type")
    url: str = ""

    class Config:
        populate_by_name = True


class LocalResult(BaseModel):
    """An index match served from the local record store."""
    origin: Literal["local"] = "local"
    entry: SearchIndexEntry
    score: float = 0.0


class RemoteResult(BaseModel):
    """An answer served by the remote fallback."""
    origin: Literal["remote"] = "remote"
    result: RemoteApiResult


ResolvedResult = Annotated[Union[LocalResult, RemoteResult], Field(discriminator="origin")]


def to_search_result(resolved: Union[LocalResult, RemoteResult]) -> SearchResult:
    """Adapt either side of the result union to the common search result shape."""
    if isinstance(resolved, LocalResult):
        entry = resolved.entry
        return SearchResult(
            title=entry.title,
            kind=entry.kind,
            namespace=entry.namespace,
            summary=entry.summary,
            description=entry.description,
            source_page=entry.source_page,
        )
    remote = resolved.result
    return SearchResult(
        title=remote.title,
        kind=coerce_kind(remote.kind),
        namespace=remote.namespace,
        summary=remote.description,
        description=remote.description,
        source_page=remote.url,
    )


def remote_to_api_record(remote: RemoteApiResult) -> ApiRecord:
    """Materialize a remote answer as a record for detail lookups."""
    return ApiRecord(
        title=remote.title,
        description=remote.description,
        summary=remote.description,
        namespace=remote.namespace,
        normalized_namespace=canonical_namespace(remote.namespace),
        kind=coerce_kind(remote.kind),
        source_page=remote.url,
    )


class Statistics(BaseModel):
    """Counts of the loaded dataset."""
    total_items: int = Field(0, alias="totalItems")
    namespaces: int = 0
    classes: int = 0
    interfaces: int = 0
    enums: int = 0
    methods: int = 0
    properties: int = 0
    delegates: int = 0
    examples: int = 0
    code_snippets: int = Field(0, alias="codeSnippets")

    class Config:
        populate_by_name = True


ApiRecord.model_rebuild()
